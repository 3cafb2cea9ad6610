"""ChatSession queries and state changes."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from orbi.models.chat_session import ChatSession
from orbi.models.mixins import utcnow

PREVIEW_LENGTH = 50


def truncate_preview(text: str, limit: int = PREVIEW_LENGTH) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


class ChatSessionService:
    def __init__(self, db: DBSession) -> None:
        self.db = db

    def get_session(self, session_id: int) -> Optional[ChatSession]:
        return self.db.query(ChatSession).filter(ChatSession.id == session_id).first()

    def get_active_session(self, user_id: int) -> Optional[ChatSession]:
        return (
            self.db.query(ChatSession)
            .filter(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))
            .order_by(ChatSession.created_at.desc(), ChatSession.id.desc())
            .first()
        )

    def get_sessions_for_user(self, user_id: int) -> List[ChatSession]:
        return (
            self.db.query(ChatSession)
            .filter(ChatSession.user_id == user_id)
            .order_by(ChatSession.updated_at.desc(), ChatSession.id.desc())
            .all()
        )

    def deactivate_all(self, user_id: int) -> int:
        return (
            self.db.query(ChatSession)
            .filter(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))
            .update(
                {
                    ChatSession.is_active: False,
                    ChatSession.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )

    def create_active(self, user_id: int) -> ChatSession:
        session = ChatSession(user_id=user_id, is_active=True)
        self.db.add(session)
        self.db.flush()
        return session

    def touch(self, session: ChatSession, preview_text: Optional[str] = None) -> None:
        """Bump updated_at; also replace the preview when one is given."""
        if preview_text is not None:
            session.preview_text = truncate_preview(preview_text)
        session.updated_at = utcnow()
        self.db.flush()
