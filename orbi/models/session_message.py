"""SessionMessage model: one row per question or answer in a chat session."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from orbi.db import Base
from orbi.models.mixins import utcnow


class SessionMessage(Base):
    """role is 'user' or 'assistant'; hash is set only on assistant rows."""

    __tablename__ = "session_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(
        Integer,
        ForeignKey("chat_sessions.id"),
        nullable=False,
        index=True,
    )
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    # No database constraint: bodies are swept independently and the hash may dangle
    hash = Column(String(8), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
