"""
Generation backend interface.

A backend turns an ordered history plus a new prompt into answer text. Role
names are translated inside each backend; callers always pass user/assistant.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from orbi.schemas.message import HistoryEntry


class GenerationBackend(ABC):
    """Contract for generative-text services."""

    name: str = "backend"

    @abstractmethod
    async def generate(self, history: List[HistoryEntry], prompt: str) -> str:
        """Return the answer text. Raise TransientBackendError on any failure."""
        ...
