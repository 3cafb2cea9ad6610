"""Relay error taxonomy."""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """Base exception for relay errors."""

    pass


class NotFoundError(RelayError):
    """A lookup by hash or session id found nothing."""

    def __init__(self, resource: str, key: object) -> None:
        self.resource = resource
        self.key = key
        super().__init__(f"{resource} not found: {key}")


class ConflictError(RelayError):
    """A message body hash already exists."""

    pass


class PersistenceError(RelayError):
    """The storage engine failed; the transaction was rolled back."""

    pass


class TransientBackendError(RelayError):
    """Network, rate-limit or server failure from the generation backend."""

    pass


class GenerationFailedError(RelayError):
    """Every attempt against the generation backend failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"all {attempts} attempts failed: {last_error}")


class BackendConfigError(RelayError):
    """The selected generation backend is not configured."""

    pass


class AuthError(RelayError):
    """The identity token is missing or invalid."""

    pass
