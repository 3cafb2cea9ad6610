"""Normalized view of the Telegram update fields the relay reads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

PRIVATE_CHAT = "private"


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    first_name: str = ""
    username: Optional[str] = None
    is_bot: bool = False

    @property
    def display_name(self) -> str:
        return self.username or self.first_name


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = PRIVATE_CHAT


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    chat: TelegramChat
    text: Optional[str] = None

    @property
    def is_private(self) -> bool:
        return self.chat.type == PRIVATE_CHAT


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
