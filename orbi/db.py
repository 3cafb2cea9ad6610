"""Engine, session factory and declarative base shared by the store and the API."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from orbi.config import get_settings

Base = declarative_base()


def _connect_args(url: str) -> dict:
    # Sessions are opened from worker threads (FastAPI sync routes, to_thread calls)
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


class DatabaseManager:
    """Lazily builds the engine and session factory from settings."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        self._database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            url = self._database_url or get_settings().database_url
            self._engine = create_engine(
                url,
                connect_args=_connect_args(url),
                pool_pre_ping=True,
            )
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                autocommit=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_all(self) -> None:
        """Create every table known to Base (idempotent)."""
        # Import models so their tables are registered on Base.metadata
        import orbi.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
