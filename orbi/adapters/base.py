"""
Chat transport interface.

The dispatcher talks to the chat platform only through this contract, so the
long-polling loop can be driven by a fake transport in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from orbi.schemas.outbound import OutboundMessage
from orbi.schemas.telegram import TelegramUpdate, TelegramUser


class ChatTransport(ABC):
    async def start(self) -> None:
        """Open network resources. Override when needed."""

    async def stop(self) -> None:
        """Release network resources. Override when needed."""

    @abstractmethod
    async def get_me(self) -> TelegramUser:
        """Return the bot's own account."""
        ...

    @abstractmethod
    async def get_updates(self, offset: int, timeout: int) -> List[TelegramUpdate]:
        """Long-poll for updates with id >= offset."""
        ...

    @abstractmethod
    async def send(self, outbound: OutboundMessage) -> Optional[int]:
        """Send a message; return the platform message id when known."""
        ...

    @abstractmethod
    async def send_chat_action(self, chat_id: int, action: str) -> None:
        """Show a chat action such as 'typing'. Must not raise."""
        ...
