"""MessageBody model: immutable, hash-addressed answer content."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text

from orbi.db import Base
from orbi.models.mixins import utcnow


class MessageBody(Base):
    """One row per stored answer. Never updated; deleted only by the retention sweep."""

    __tablename__ = "message_bodies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    hash = Column(String(8), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
