"""
MessageStore: the single owner of message bodies, chat sessions and session
messages.

Each public method runs in its own database transaction. The per-entity services
only flush; commit, rollback and error translation happen here, so every
multi-statement mutation is all-or-nothing.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import timedelta
from typing import Generator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession, sessionmaker

from orbi.db import DatabaseManager
from orbi.exceptions import ConflictError, NotFoundError, PersistenceError, RelayError
from orbi.infra.logging_config import get_logger
from orbi.models.mixins import utcnow
from orbi.schemas.message import (
    ChatSessionRead,
    MessageBodyRead,
    MessageRole,
    SessionMessageRead,
)
from orbi.services.chat_session_service import ChatSessionService
from orbi.services.message_body_service import MAX_HASH_ATTEMPTS, MessageBodyService
from orbi.services.session_message_service import SessionMessageService

logger = get_logger("store")


class MessageStore:
    def __init__(
        self,
        session_factory: sessionmaker,
        database: Optional[DatabaseManager] = None,
    ) -> None:
        self._session_factory = session_factory
        self._database = database

    @classmethod
    def from_manager(cls, database: DatabaseManager) -> "MessageStore":
        return cls(database.session_factory, database=database)

    @contextmanager
    def _transaction(self) -> Generator[DBSession, None, None]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except RelayError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(str(e.orig)) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Transaction rolled back: %s", e)
            raise PersistenceError(str(e)) from e
        finally:
            db.close()

    def init_schema(self) -> None:
        if self._database is None:
            raise PersistenceError("init_schema needs a DatabaseManager")
        try:
            self._database.create_all()
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e

    # ------------------------------------------------------------------
    # Bodies
    # ------------------------------------------------------------------

    def create_body(self, content: str) -> str:
        """Store content under a fresh 8-char hash and return the hash."""
        last_error: Optional[ConflictError] = None
        for _ in range(MAX_HASH_ATTEMPTS):
            try:
                with self._transaction() as db:
                    return MessageBodyService(db).create_body(content).hash
            except ConflictError as e:
                # Another writer took the same hash between check and insert
                last_error = e
        raise last_error

    def get_body(self, message_hash: str) -> MessageBodyRead:
        with self._transaction() as db:
            body = MessageBodyService(db).get_body(message_hash)
            if body is None:
                raise NotFoundError("message", message_hash)
            return MessageBodyRead.model_validate(body)

    def purge_bodies_older_than(self, retention: timedelta) -> int:
        """Delete bodies created before now - retention. Session messages are kept."""
        cutoff = utcnow() - retention
        with self._transaction() as db:
            return MessageBodyService(db).delete_older_than(cutoff)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def get_active_session(self, user_id: int) -> Optional[ChatSessionRead]:
        with self._transaction() as db:
            session = ChatSessionService(db).get_active_session(user_id)
            if session is None:
                return None
            return ChatSessionRead.model_validate(session)

    def create_session(self, user_id: int) -> ChatSessionRead:
        """Deactivate every session of the user and open a new active one."""
        with self._transaction() as db:
            service = ChatSessionService(db)
            service.deactivate_all(user_id)
            session = service.create_active(user_id)
            return ChatSessionRead.model_validate(session)

    def deactivate_sessions(self, user_id: int) -> int:
        with self._transaction() as db:
            return ChatSessionService(db).deactivate_all(user_id)

    def list_sessions_for_user(self, user_id: int) -> List[ChatSessionRead]:
        with self._transaction() as db:
            sessions = ChatSessionService(db).get_sessions_for_user(user_id)
            return [ChatSessionRead.model_validate(s) for s in sessions]

    # ------------------------------------------------------------------
    # Session messages
    # ------------------------------------------------------------------

    def append_message(
        self,
        session_id: int,
        role: MessageRole,
        content: str,
        message_hash: Optional[str] = None,
    ) -> SessionMessageRead:
        role = MessageRole(role)
        with self._transaction() as db:
            message = self._append(db, session_id, role, content, message_hash)
            return SessionMessageRead.model_validate(message)

    def append_exchange(
        self, session_id: int, question: str, answer: str
    ) -> Tuple[SessionMessageRead, SessionMessageRead]:
        """Persist question, answer body and answer message together or not at all."""
        last_error: Optional[ConflictError] = None
        for _ in range(MAX_HASH_ATTEMPTS):
            try:
                with self._transaction() as db:
                    asked = self._append(db, session_id, MessageRole.USER, question)
                    body = MessageBodyService(db).create_body(answer)
                    answered = self._append(
                        db, session_id, MessageRole.ASSISTANT, answer, body.hash
                    )
                    return (
                        SessionMessageRead.model_validate(asked),
                        SessionMessageRead.model_validate(answered),
                    )
            except ConflictError as e:
                last_error = e
        raise last_error

    def list_messages(self, session_id: int) -> List[SessionMessageRead]:
        with self._transaction() as db:
            messages = SessionMessageService(db).get_messages(session_id)
            return [SessionMessageRead.model_validate(m) for m in messages]

    def list_first_user_message_per_session(
        self, user_id: int
    ) -> List[MessageBodyRead]:
        """
        One body per session of the user, newest first.

        User rows carry no body, so each session is represented by the answer to
        its earliest question. Sessions whose answer body was swept are skipped.
        """
        with self._transaction() as db:
            messages = SessionMessageService(db)
            bodies = MessageBodyService(db)
            found = []
            for session in ChatSessionService(db).get_sessions_for_user(user_id):
                answer = messages.get_first_answer(session.id)
                if answer is None:
                    continue
                body = bodies.get_body(answer.hash)
                if body is not None:
                    found.append(body)
            found.sort(key=lambda b: (b.created_at, b.id), reverse=True)
            return [MessageBodyRead.model_validate(b) for b in found]

    @staticmethod
    def _append(
        db: DBSession,
        session_id: int,
        role: MessageRole,
        content: str,
        message_hash: Optional[str] = None,
    ):
        sessions = ChatSessionService(db)
        session = sessions.get_session(session_id)
        if session is None:
            raise NotFoundError("chat session", session_id)
        message = SessionMessageService(db).create_message(
            session_id, role, content, message_hash
        )
        if role is MessageRole.USER:
            sessions.touch(session, preview_text=content)
        else:
            sessions.touch(session)
        return message
