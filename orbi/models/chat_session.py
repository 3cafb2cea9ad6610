"""ChatSession model: one conversation thread per row; at most one active per user."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Column, Integer, String

from orbi.db import Base
from orbi.models.mixins import TimestampMixin


class ChatSession(Base, TimestampMixin):
    """Sessions are deactivated, never deleted."""

    __tablename__ = "chat_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    preview_text = Column(String(64), nullable=True)
