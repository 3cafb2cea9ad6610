"""
Update dispatcher: the long-polling loop between the chat transport and the
generation gateway.

Each update is handled in its own task, bounded by a semaphore. Failures inside
a task are logged and answered with a generic error reply; the polling loop
itself only stops when cancelled.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Set

from telegram.constants import ChatAction

from orbi.adapters.base import ChatTransport
from orbi.config import Settings, get_settings
from orbi.constants.replies import get_replies
from orbi.core.addressing import parse_start_payload
from orbi.core.replies import (
    build_answer_reply,
    build_error_reply,
    build_found_reply,
    build_not_found_reply,
    build_welcome_reply,
)
from orbi.exceptions import NotFoundError
from orbi.infra.logging_config import get_logger
from orbi.schemas.telegram import TelegramMessage, TelegramUpdate
from orbi.services.gateway import AIService
from orbi.services.message_store import MessageStore

logger = get_logger("dispatcher")

START_COMMAND = "/start"
NEW_CHAT_COMMAND = "/newchat"
TYPING = ChatAction.TYPING.value


class UpdateDispatcher:
    def __init__(
        self,
        transport: ChatTransport,
        ai: AIService,
        store: MessageStore,
        webapp_url: str = "",
        locale: str = "en",
        poll_timeout: int = 60,
        poll_error_backoff: float = 5.0,
        typing_interval: float = 4.0,
        max_concurrent: int = 32,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._ai = ai
        self._store = store
        self._webapp_url = webapp_url
        self._locale = locale
        self._poll_timeout = poll_timeout
        self._poll_error_backoff = poll_error_backoff
        self._typing_interval = typing_interval
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._sleep = sleep
        self._tasks: Set[asyncio.Task] = set()
        self.bot_username: str = ""

    @classmethod
    def from_settings(
        cls,
        transport: ChatTransport,
        ai: AIService,
        store: MessageStore,
        settings: Optional[Settings] = None,
    ) -> "UpdateDispatcher":
        settings = settings or get_settings()
        return cls(
            transport,
            ai,
            store,
            webapp_url=settings.webapp_url,
            locale=settings.bot_locale,
            poll_timeout=settings.poll_timeout_seconds,
            poll_error_backoff=settings.poll_error_backoff_seconds,
            typing_interval=settings.typing_interval_seconds,
            max_concurrent=settings.max_concurrent_updates,
        )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def run(self) -> None:
        me = await self._transport.get_me()
        self.bot_username = me.username or ""
        logger.info("Bot started: @%s", self.bot_username)

        offset = 0
        while True:
            offset = await self.poll_once(offset)

    async def poll_once(self, offset: int) -> int:
        """Fetch one batch, spawn a task per update and return the next offset."""
        try:
            updates = await self._transport.get_updates(offset, self._poll_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Failed to get updates: %s", e)
            await self._sleep(self._poll_error_backoff)
            return offset

        for update in updates:
            self._spawn(self._handle_guarded(update))
            offset = max(offset, update.update_id + 1)
        return offset

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _handle_guarded(self, update: TelegramUpdate) -> None:
        async with self._semaphore:
            try:
                await self.handle_update(update)
            except Exception:
                logger.exception("Error processing update %s", update.update_id)
                if update.message is not None:
                    await self._send_error(update.message)

    async def _send_error(self, message: TelegramMessage) -> None:
        try:
            await self._transport.send(build_error_reply(message, self._locale))
        except Exception:
            logger.exception("Failed to send error reply to chat %s", message.chat.id)

    # ------------------------------------------------------------------
    # Per-update logic
    # ------------------------------------------------------------------

    async def handle_update(self, update: TelegramUpdate) -> None:
        message = update.message
        if message is None or not message.text:
            return
        text = message.text

        if self._is_command(text, START_COMMAND):
            await self._handle_start(message)
            return

        if not self.should_process(message):
            return

        if message.from_user is None:
            return

        if self._is_command(text, NEW_CHAT_COMMAND):
            await self._handle_new_chat(message)
            return

        question = self.extract_question(message)
        if not question:
            return

        done = asyncio.Event()
        await self._transport.send_chat_action(message.chat.id, TYPING)
        self._spawn(self._keep_typing(message.chat.id, done))
        try:
            answer = await self._ai.ask_with_retry(message.from_user.id, question)
        finally:
            done.set()

        await self._transport.send(
            build_answer_reply(
                message,
                answer.text,
                answer.hash,
                self.bot_username,
                self._webapp_url,
                self._locale,
            )
        )

    def should_process(self, message: TelegramMessage) -> bool:
        """Private chats always; groups only when the bot is mentioned."""
        if message.is_private:
            return True
        mention = f"@{self.bot_username}"
        return bool(self.bot_username) and mention in (message.text or "")

    def extract_question(self, message: TelegramMessage) -> str:
        question = message.text or ""
        if not message.is_private and self.bot_username:
            question = question.replace(f"@{self.bot_username}", "")
        return question.strip()

    def _is_command(self, text: str, command: str) -> bool:
        head = text.split(maxsplit=1)[0] if text.strip() else ""
        if head == command:
            return True
        return bool(self.bot_username) and head == f"{command}@{self.bot_username}"

    async def _handle_start(self, message: TelegramMessage) -> None:
        message_hash = parse_start_payload(message.text)
        if message_hash is None:
            await self._transport.send(
                build_welcome_reply(message, self._webapp_url, self._locale)
            )
            return

        try:
            body = await asyncio.to_thread(self._store.get_body, message_hash)
        except NotFoundError:
            logger.info("Start payload for unknown hash %s", message_hash)
            await self._transport.send(build_not_found_reply(message, self._locale))
            return

        await self._transport.send(
            build_found_reply(
                message, body.content, body.hash, self._webapp_url, self._locale
            )
        )

    async def _handle_new_chat(self, message: TelegramMessage) -> None:
        await self._ai.new_session(message.from_user.id)
        confirmation = get_replies(self._locale)["new_chat"]
        message_hash = await asyncio.to_thread(self._store.create_body, confirmation)
        await self._transport.send(
            build_answer_reply(
                message,
                confirmation,
                message_hash,
                self.bot_username,
                self._webapp_url,
                self._locale,
            )
        )

    async def _keep_typing(self, chat_id: int, done: asyncio.Event) -> None:
        """Repeat the typing action every interval until done is set."""
        while not done.is_set():
            try:
                await asyncio.wait_for(done.wait(), timeout=self._typing_interval)
            except asyncio.TimeoutError:
                await self._transport.send_chat_action(chat_id, TYPING)
