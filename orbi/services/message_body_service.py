"""MessageBody insert, lookup and age-based purge."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session as DBSession

from orbi.core.addressing import derive_hash, now_nanos
from orbi.exceptions import ConflictError
from orbi.models.message_body import MessageBody

MAX_HASH_ATTEMPTS = 5


class MessageBodyService:
    """Works inside the caller's transaction: flushes, never commits."""

    def __init__(self, db: DBSession) -> None:
        self.db = db

    def get_body(self, message_hash: str) -> Optional[MessageBody]:
        return (
            self.db.query(MessageBody).filter(MessageBody.hash == message_hash).first()
        )

    def hash_exists(self, message_hash: str) -> bool:
        return (
            self.db.query(MessageBody.id)
            .filter(MessageBody.hash == message_hash)
            .first()
            is not None
        )

    def fresh_hash(self, content: str) -> str:
        """Derive a hash not yet in the table, re-reading the clock on collision."""
        for _ in range(MAX_HASH_ATTEMPTS):
            candidate = derive_hash(content, now_nanos())
            if not self.hash_exists(candidate):
                return candidate
        raise ConflictError(
            f"could not derive an unused hash after {MAX_HASH_ATTEMPTS} attempts"
        )

    def create_body(self, content: str) -> MessageBody:
        body = MessageBody(hash=self.fresh_hash(content), content=content)
        self.db.add(body)
        self.db.flush()
        return body

    def delete_older_than(self, cutoff: datetime) -> int:
        return (
            self.db.query(MessageBody)
            .filter(MessageBody.created_at < cutoff)
            .delete(synchronize_session=False)
        )
