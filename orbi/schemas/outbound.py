"""Transport-neutral outbound message."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class InlineButton(BaseModel):
    """A single inline keyboard button: a plain link or a mini-app launcher."""

    text: str
    url: Optional[str] = None
    web_app_url: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one_target(self) -> "InlineButton":
        if bool(self.url) == bool(self.web_app_url):
            raise ValueError("InlineButton needs exactly one of url or web_app_url")
        return self


class OutboundMessage(BaseModel):
    chat_id: int
    text: str
    parse_mode: Optional[str] = None
    reply_to_message_id: Optional[int] = None
    buttons: List[InlineButton] = Field(default_factory=list)
