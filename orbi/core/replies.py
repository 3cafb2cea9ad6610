"""Builders for the bot's outbound replies."""

from __future__ import annotations

from telegram.constants import ParseMode
from telegram.helpers import escape_markdown

from orbi.constants.replies import get_replies
from orbi.core.addressing import build_start_link, build_webapp_url
from orbi.schemas.outbound import InlineButton, OutboundMessage
from orbi.schemas.telegram import TelegramMessage

ANSWER_PREVIEW_LENGTH = 200
FOUND_PREVIEW_LENGTH = 100


def format_preview(text: str, max_length: int) -> str:
    """Cut text at the last space before max_length and append an ellipsis."""
    if len(text) <= max_length:
        return text
    cut = text.rfind(" ", 0, max_length)
    if cut == -1:
        cut = max_length
    return text[:cut] + "..."


def _escape(text: str) -> str:
    return escape_markdown(text, version=2)


def build_answer_reply(
    message: TelegramMessage,
    answer: str,
    message_hash: str,
    bot_username: str,
    webapp_url: str,
    locale: str,
) -> OutboundMessage:
    """
    Preview of an answer with a button to the full text.

    Private chats get a mini-app button; groups get a t.me deep link that
    reopens the bot privately with /start msg_<hash>.
    """
    replies = get_replies(locale)
    user = message.from_user.display_name if message.from_user else ""
    text = replies["answer_header"].format(
        user=_escape(user),
        preview=_escape(format_preview(answer, ANSWER_PREVIEW_LENGTH)),
    )
    if message.is_private:
        button = InlineButton(
            text=replies["answer_button"],
            web_app_url=build_webapp_url(webapp_url, message_hash),
        )
    else:
        button = InlineButton(
            text=replies["answer_button"],
            url=build_start_link(bot_username, message_hash),
        )
    return OutboundMessage(
        chat_id=message.chat.id,
        text=text,
        parse_mode=ParseMode.MARKDOWN_V2.value,
        reply_to_message_id=message.message_id,
        buttons=[button],
    )


def build_found_reply(
    message: TelegramMessage,
    content: str,
    message_hash: str,
    webapp_url: str,
    locale: str,
) -> OutboundMessage:
    replies = get_replies(locale)
    text = replies["found_text"].format(
        preview=_escape(format_preview(content, FOUND_PREVIEW_LENGTH))
    )
    return OutboundMessage(
        chat_id=message.chat.id,
        text=text,
        parse_mode=ParseMode.MARKDOWN_V2.value,
        buttons=[
            InlineButton(
                text=replies["found_button"],
                web_app_url=build_webapp_url(webapp_url, message_hash),
            )
        ],
    )


def build_not_found_reply(message: TelegramMessage, locale: str) -> OutboundMessage:
    return OutboundMessage(
        chat_id=message.chat.id,
        text=get_replies(locale)["not_found"],
        reply_to_message_id=message.message_id,
    )


def build_welcome_reply(
    message: TelegramMessage, webapp_url: str, locale: str
) -> OutboundMessage:
    replies = get_replies(locale)
    name = (message.from_user.first_name if message.from_user else "") or replies[
        "welcome_fallback_name"
    ]
    buttons = []
    if webapp_url:
        buttons.append(
            InlineButton(text=replies["history_button"], web_app_url=webapp_url)
        )
    return OutboundMessage(
        chat_id=message.chat.id,
        text=replies["welcome"].format(name=name),
        buttons=buttons,
    )


def build_error_reply(message: TelegramMessage, locale: str) -> OutboundMessage:
    return OutboundMessage(
        chat_id=message.chat.id,
        text=get_replies(locale)["error"],
        reply_to_message_id=message.message_id,
    )
