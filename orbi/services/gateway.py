"""
Retry-wrapped generation gateway.

One attempt resolves the user's active session (creating it when missing),
reads its history, asks the backend under a timeout and persists the exchange.
The whole attempt is retried up to max_retries times with a fixed delay.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from orbi.backends.base import GenerationBackend
from orbi.config import Settings, get_settings
from orbi.exceptions import GenerationFailedError, TransientBackendError
from orbi.infra.logging_config import get_logger
from orbi.schemas.message import ChatSessionRead, HistoryEntry
from orbi.services.message_store import MessageStore

logger = get_logger("gateway")


@dataclass(frozen=True)
class Answer:
    text: str
    hash: str


class AIService(ABC):
    """What the dispatcher needs from the generation side."""

    @abstractmethod
    async def ask_with_retry(self, user_id: int, question: str) -> Answer: ...

    @abstractmethod
    async def new_session(self, user_id: int) -> ChatSessionRead: ...


class Gateway(AIService):
    def __init__(
        self,
        store: MessageStore,
        backend: GenerationBackend,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._store = store
        self._backend = backend
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._timeout = timeout
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        store: MessageStore,
        backend: GenerationBackend,
        settings: Optional[Settings] = None,
    ) -> "Gateway":
        settings = settings or get_settings()
        return cls(
            store,
            backend,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay_seconds,
            timeout=settings.http_timeout_seconds,
        )

    async def new_session(self, user_id: int) -> ChatSessionRead:
        return await asyncio.to_thread(self._store.create_session, user_id)

    async def ask(self, user_id: int, question: str) -> Answer:
        # Store calls block on the database; keep them off the event loop
        session = await asyncio.to_thread(self._store.get_active_session, user_id)
        if session is None:
            session = await asyncio.to_thread(self._store.create_session, user_id)

        messages = await asyncio.to_thread(self._store.list_messages, session.id)
        history = [HistoryEntry(role=m.role, content=m.content) for m in messages]

        try:
            text = await asyncio.wait_for(
                self._backend.generate(history, question), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            raise TransientBackendError(
                f"{self._backend.name} did not answer within {self._timeout}s"
            ) from e

        _, answered = await asyncio.to_thread(
            self._store.append_exchange, session.id, question, text
        )
        return Answer(text=text, hash=answered.hash)

    async def ask_with_retry(self, user_id: int, question: str) -> Answer:
        last_error: Optional[Exception] = None
        for attempt in range(1, self._max_retries + 1):
            try:
                return await self.ask(user_id, question)
            except Exception as e:
                last_error = e
                logger.warning(
                    "Attempt %d/%d for user %s failed: %s",
                    attempt,
                    self._max_retries,
                    user_id,
                    e,
                )
            if attempt < self._max_retries:
                await self._sleep(self._retry_delay)
        raise GenerationFailedError(self._max_retries, last_error) from last_error
