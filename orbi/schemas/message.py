"""Pydantic schemas for message bodies, chat sessions and session messages."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# -----------------------------------------------------------------------------
# Roles
# -----------------------------------------------------------------------------


class MessageRole(str, Enum):
    """Canonical roles stored in session history."""

    USER = "user"
    ASSISTANT = "assistant"


# -----------------------------------------------------------------------------
# MessageBody
# -----------------------------------------------------------------------------


class MessageBodyRead(BaseModel):
    """Message body for API responses (camelCase createdAt, as the mini-app expects)."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    hash: str
    content: str
    created_at: datetime = Field(alias="createdAt")


# -----------------------------------------------------------------------------
# ChatSession
# -----------------------------------------------------------------------------


class ChatSessionRead(BaseModel):
    """Chat session as stored."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(alias="userId")
    is_active: bool = Field(alias="isActive")
    preview_text: Optional[str] = Field(default=None, alias="previewText")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


# -----------------------------------------------------------------------------
# SessionMessage
# -----------------------------------------------------------------------------


class SessionMessageRead(BaseModel):
    """One entry of a session's ordered history."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: int
    role: MessageRole
    content: str
    hash: Optional[str] = None
    created_at: datetime


class HistoryEntry(BaseModel):
    """Role/content pair handed to a generation backend."""

    role: MessageRole
    content: str
