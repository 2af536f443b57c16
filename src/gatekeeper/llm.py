from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

import httpx

if TYPE_CHECKING:
    from gatekeeper.services.rag.types import Chunk

SYSTEM_PROMPT = (
    "You are GateKeeper, an assistant that answers questions over the user's "
    "personal knowledge base. Follow the instructions in the user message."
)


class LLMClientError(RuntimeError):
    pass


class LLMClient(Protocol):
    def generate(self, *, prompt: str, docs: Sequence[Chunk]) -> str: ...


def _system_message(docs: Sequence[Chunk]) -> str:
    sources = sorted({doc.source_id for doc in docs})
    if not sources:
        return SYSTEM_PROMPT
    return f"{SYSTEM_PROMPT}\nThe context was retrieved from: {', '.join(sources)}."


class OllamaChatClient:
    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        timeout_seconds: float = 30.0,
        temperature: float = 0.2,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._temperature = temperature

    def generate(self, *, prompt: str, docs: Sequence[Chunk]) -> str:
        try:
            response = httpx.post(
                f"{self._base_url}/chat/completions",
                json={
                    "model": self._model,
                    "messages": [
                        {"role": "system", "content": _system_message(docs)},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": self._temperature,
                },
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LLMClientError(str(exc)) from exc

        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices:
            raise LLMClientError("Invalid chat completion payload: missing choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise LLMClientError("Invalid chat completion payload: missing assistant content")

        return content
