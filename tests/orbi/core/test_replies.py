"""Tests for reply builders."""

import pytest

from conftest import WEBAPP_URL, telegram_message
from orbi.constants.replies import REPLIES, get_replies
from orbi.core.replies import (
    build_answer_reply,
    build_error_reply,
    build_found_reply,
    build_not_found_reply,
    build_welcome_reply,
    format_preview,
)
from orbi.schemas.outbound import InlineButton
from orbi.schemas.telegram import TelegramMessage


def _message(text="hello", **kwargs) -> TelegramMessage:
    return TelegramMessage.model_validate(telegram_message(text, **kwargs))


def test_format_preview_short_text_unchanged():
    assert format_preview("short answer", 200) == "short answer"


def test_format_preview_cuts_on_word_boundary():
    text = "alpha beta gamma delta"
    assert format_preview(text, 13) == "alpha beta..."


def test_format_preview_without_spaces_cuts_hard():
    assert format_preview("a" * 30, 10) == "a" * 10 + "..."


def test_answer_reply_private_chat_uses_web_app():
    reply = build_answer_reply(
        _message(message_id=11), "Hi there", "0a1b2c3d", "orbi_bot", WEBAPP_URL, "en"
    )
    assert reply.chat_id == 789
    assert reply.reply_to_message_id == 11
    assert reply.parse_mode == "MarkdownV2"
    assert reply.text == "Answer for test\\_user:\n\nHi there"
    assert reply.buttons[0].web_app_url == f"{WEBAPP_URL}/message/0a1b2c3d"
    assert reply.buttons[0].url is None


def test_answer_reply_group_chat_uses_deep_link():
    reply = build_answer_reply(
        _message(chat_id=-100, chat_type="supergroup"),
        "Hi there",
        "0a1b2c3d",
        "orbi_bot",
        WEBAPP_URL,
        "en",
    )
    assert reply.buttons[0].url == "https://t.me/orbi_bot?start=msg_0a1b2c3d"
    assert reply.buttons[0].web_app_url is None


def test_answer_reply_escapes_markdown_and_truncates():
    answer = "1. Use *bold* (carefully). " * 20
    reply = build_answer_reply(
        _message(), answer, "0a1b2c3d", "orbi_bot", WEBAPP_URL, "en"
    )
    assert "\\*bold\\*" in reply.text
    assert "\\(carefully\\)\\." in reply.text
    assert reply.text.endswith("\\.\\.\\.")


def test_answer_reply_falls_back_to_first_name():
    msg = _message(username=None, first_name="Ana")
    reply = build_answer_reply(msg, "ok", "0a1b2c3d", "orbi_bot", WEBAPP_URL, "en")
    assert reply.text.startswith("Answer for Ana:")


def test_found_reply():
    reply = build_found_reply(_message(), "x" * 150, "0a1b2c3d", WEBAPP_URL, "en")
    assert reply.text.startswith("📝 *Answer found\\!*")
    assert "x" * 100 + "\\.\\.\\." in reply.text
    assert reply.buttons[0].web_app_url == f"{WEBAPP_URL}/message/0a1b2c3d"


def test_not_found_and_error_replies_reply_to_message():
    msg = _message(message_id=99)
    assert build_not_found_reply(msg, "en").reply_to_message_id == 99
    error = build_error_reply(msg, "en")
    assert error.reply_to_message_id == 99
    assert error.text == REPLIES["en"]["error"]
    assert error.parse_mode is None


def test_welcome_reply_with_and_without_webapp():
    msg = _message("/start", first_name="Ana")
    reply = build_welcome_reply(msg, WEBAPP_URL, "en")
    assert reply.text.startswith("Hello, Ana!")
    assert reply.buttons[0].web_app_url == WEBAPP_URL

    assert build_welcome_reply(msg, "", "en").buttons == []


def test_welcome_reply_fallback_name_pt():
    msg = _message("/start", first_name="")
    reply = build_welcome_reply(msg, WEBAPP_URL, "pt")
    assert reply.text.startswith("Olá, usuário!")


def test_get_replies_unknown_locale_defaults_to_english():
    assert get_replies("fr") is REPLIES["en"]
    assert get_replies("PT") is REPLIES["pt"]


def test_locales_define_same_keys():
    assert set(REPLIES["en"]) == set(REPLIES["pt"])


def test_inline_button_needs_one_target():
    with pytest.raises(ValueError):
        InlineButton(text="x")
    with pytest.raises(ValueError):
        InlineButton(text="x", url="https://a", web_app_url="https://b")
