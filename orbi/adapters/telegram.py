"""
Telegram transport.

Uses python-telegram-bot's async Bot for long polling and sending. Updates are
normalized into orbi.schemas.telegram models before they reach the dispatcher.
"""

from __future__ import annotations

from typing import Any, List, Optional

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, Update, WebAppInfo
from telegram.error import TelegramError

from orbi.adapters.base import ChatTransport
from orbi.infra.logging_config import get_logger
from orbi.schemas.outbound import OutboundMessage
from orbi.schemas.telegram import TelegramUpdate, TelegramUser

logger = get_logger("adapters.telegram")

ALLOWED_UPDATES = ["message"]


def to_reply_markup(outbound: OutboundMessage) -> Optional[InlineKeyboardMarkup]:
    """One button per row, in order."""
    if not outbound.buttons:
        return None
    rows = []
    for button in outbound.buttons:
        if button.web_app_url:
            web_app = WebAppInfo(url=button.web_app_url)
            rows.append([InlineKeyboardButton(button.text, web_app=web_app)])
        else:
            rows.append([InlineKeyboardButton(button.text, url=button.url)])
    return InlineKeyboardMarkup(rows)


def normalize_update(update: Update) -> TelegramUpdate:
    return TelegramUpdate.model_validate(update.to_dict())


class TelegramAdapter(ChatTransport):
    """Telegram adapter: long-poll updates, send messages via Bot API."""

    def __init__(self, bot_token: str, bot: Optional[Bot] = None) -> None:
        self._bot_token = bot_token
        self._bot = bot

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self._bot_token)
        return self._bot

    async def start(self) -> None:
        await self._get_bot().initialize()

    async def stop(self) -> None:
        if self._bot is not None:
            await self._bot.shutdown()

    async def get_me(self) -> TelegramUser:
        me = await self._get_bot().get_me()
        return TelegramUser(
            id=me.id,
            first_name=me.first_name or "",
            username=me.username,
            is_bot=True,
        )

    async def get_updates(self, offset: int, timeout: int) -> List[TelegramUpdate]:
        raw = await self._get_bot().get_updates(
            offset=offset,
            timeout=timeout,
            allowed_updates=ALLOWED_UPDATES,
        )
        return [normalize_update(u) for u in raw]

    async def send(self, outbound: OutboundMessage) -> Optional[int]:
        send_kw: dict[str, Any] = {
            "chat_id": outbound.chat_id,
            "text": outbound.text,
        }
        if outbound.parse_mode:
            send_kw["parse_mode"] = outbound.parse_mode
        if outbound.reply_to_message_id:
            send_kw["reply_to_message_id"] = outbound.reply_to_message_id
        markup = to_reply_markup(outbound)
        if markup is not None:
            send_kw["reply_markup"] = markup
        sent = await self._get_bot().send_message(**send_kw)
        return sent.message_id if sent else None

    async def send_chat_action(self, chat_id: int, action: str) -> None:
        try:
            await self._get_bot().send_chat_action(chat_id=chat_id, action=action)
        except TelegramError as e:
            logger.warning("Failed to send chat action to %s: %s", chat_id, e)
