"""Azure OpenAI (or any OpenAI-compatible chat endpoint) backend via pydantic-ai."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from orbi.backends.base import GenerationBackend
from orbi.exceptions import TransientBackendError
from orbi.infra.logging_config import get_logger
from orbi.schemas.message import HistoryEntry, MessageRole

logger = get_logger("backends.openai_chat")

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


def history_to_messages(
    history: List[HistoryEntry], system_prompt: Optional[str] = None
) -> List[Any]:
    """Convert stored history to pydantic-ai messages, system prompt first."""
    out: List[Any] = []
    if system_prompt:
        out.append(ModelRequest(parts=[SystemPromptPart(content=system_prompt)]))
    for entry in history:
        content = (entry.content or "").strip()
        if not content:
            continue
        if entry.role is MessageRole.USER:
            out.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        else:
            out.append(ModelResponse(parts=[TextPart(content=content)]))
    return out


class OpenAIChatBackend(GenerationBackend):
    name = "azure"

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        model: str = "gpt-4",
        max_tokens: int = 4096,
        temperature: float = 1.0,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        agent: Optional[Agent] = None,
    ) -> None:
        self._system_prompt = system_prompt
        self._settings = ModelSettings(max_tokens=max_tokens, temperature=temperature)
        if agent is None:
            provider = OpenAIProvider(base_url=endpoint, api_key=api_key)
            agent = Agent(OpenAIChatModel(model, provider=provider))
        logger.info("Initializing chat backend with model %s at %s", model, endpoint)
        self._agent = agent

    async def generate(self, history: List[HistoryEntry], prompt: str) -> str:
        message_history = history_to_messages(history, self._system_prompt)
        try:
            result = await self._agent.run(
                prompt,
                message_history=message_history,
                model_settings=self._settings,
            )
        except Exception as e:
            raise TransientBackendError(f"Chat completion failed: {e}") from e
        answer = str(result.output or "").strip()
        if not answer:
            raise TransientBackendError("Empty response from chat completion")
        return answer
