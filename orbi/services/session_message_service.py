"""SessionMessage insert and ordered reads."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from orbi.models.session_message import SessionMessage
from orbi.schemas.message import MessageRole


class SessionMessageService:
    def __init__(self, db: DBSession) -> None:
        self.db = db

    def create_message(
        self,
        session_id: int,
        role: MessageRole,
        content: str,
        message_hash: Optional[str] = None,
    ) -> SessionMessage:
        msg = SessionMessage(
            session_id=session_id,
            role=role.value,
            content=content,
            hash=message_hash,
        )
        self.db.add(msg)
        self.db.flush()
        return msg

    def get_messages(self, session_id: int) -> List[SessionMessage]:
        return (
            self.db.query(SessionMessage)
            .filter(SessionMessage.session_id == session_id)
            .order_by(SessionMessage.created_at, SessionMessage.id)
            .all()
        )

    def get_first_answer(self, session_id: int) -> Optional[SessionMessage]:
        """The assistant reply to the earliest user message of the session."""
        first_question = (
            self.db.query(SessionMessage)
            .filter(
                SessionMessage.session_id == session_id,
                SessionMessage.role == MessageRole.USER.value,
            )
            .order_by(SessionMessage.created_at, SessionMessage.id)
            .first()
        )
        if first_question is None:
            return None
        return (
            self.db.query(SessionMessage)
            .filter(
                SessionMessage.session_id == session_id,
                SessionMessage.role == MessageRole.ASSISTANT.value,
                SessionMessage.hash.isnot(None),
                SessionMessage.id > first_question.id,
            )
            .order_by(SessionMessage.created_at, SessionMessage.id)
            .first()
        )
