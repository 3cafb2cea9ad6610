"""Google Gemini backend over the generateContent REST endpoint."""

from __future__ import annotations

import asyncio
from typing import Any, List

import requests

from orbi.backends.base import GenerationBackend
from orbi.exceptions import TransientBackendError
from orbi.infra.logging_config import get_logger
from orbi.schemas.message import HistoryEntry, MessageRole

logger = get_logger("backends.gemini")

GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)

_ROLE_MAP = {
    MessageRole.USER: "user",
    MessageRole.ASSISTANT: "model",
}


class GeminiBackend(GenerationBackend):
    name = "google"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 1.0,
        top_k: int = 64,
        top_p: float = 0.95,
        max_output_tokens: int = 65536,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._generation_config = {
            "temperature": temperature,
            "topK": top_k,
            "topP": top_p,
            "maxOutputTokens": max_output_tokens,
            "responseMimeType": "text/plain",
        }

    def build_payload(self, history: List[HistoryEntry], prompt: str) -> dict[str, Any]:
        contents = [
            {"role": _ROLE_MAP[entry.role], "parts": [{"text": entry.content}]}
            for entry in history
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        return {"contents": contents, "generationConfig": self._generation_config}

    def _post(self, payload: dict[str, Any]) -> str:
        url = GEMINI_URL.format(model=self._model)
        try:
            resp = requests.post(
                url,
                params={"key": self._api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise TransientBackendError(f"Gemini request failed: {e}") from e

        if resp.status_code != 200:
            raise TransientBackendError(
                f"Gemini returned HTTP {resp.status_code}: "
                f"{resp.text[:500] if resp.text else 'no body'}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise TransientBackendError(f"Invalid JSON from Gemini: {e}") from e

        candidates = data.get("candidates") or []
        parts = None
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts")
        if not parts or not parts[0].get("text"):
            raise TransientBackendError("Empty response from Gemini")
        return parts[0]["text"]

    async def generate(self, history: List[HistoryEntry], prompt: str) -> str:
        payload = self.build_payload(history, prompt)
        logger.debug(
            "Calling Gemini model %s with %d history entries", self._model, len(history)
        )
        return await asyncio.to_thread(self._post, payload)
