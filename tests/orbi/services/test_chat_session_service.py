"""Tests for ChatSessionService helpers."""

from orbi.models.chat_session import ChatSession
from orbi.services.chat_session_service import ChatSessionService, truncate_preview


def test_truncate_preview_short_text_unchanged():
    assert truncate_preview("  hello  ") == "hello"


def test_truncate_preview_long_text():
    text = "word " * 20
    preview = truncate_preview(text)
    assert preview.endswith("...")
    assert len(preview) <= 53


def test_truncate_preview_empty():
    assert truncate_preview("") == ""
    assert truncate_preview(None) == ""


def active_count(db, user_id):
    return (
        db.query(ChatSession)
        .filter(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))
        .count()
    )


def test_deactivate_all(db, user_id):
    svc = ChatSessionService(db)
    svc.create_active(user_id)
    svc.create_active(user_id)
    db.commit()
    assert active_count(db, user_id) == 2

    assert svc.deactivate_all(user_id) == 2
    db.commit()
    assert active_count(db, user_id) == 0
    assert svc.get_active_session(user_id) is None


def test_get_active_session_prefers_newest(db, user_id):
    svc = ChatSessionService(db)
    svc.create_active(user_id)
    newest = svc.create_active(user_id)
    db.commit()
    assert svc.get_active_session(user_id).id == newest.id
