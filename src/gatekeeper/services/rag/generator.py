from __future__ import annotations

import logging
from typing import Sequence

from gatekeeper.llm import LLMClient, LLMClientError
from gatekeeper.services.rag.errors import GenerationError
from gatekeeper.services.rag.prompt import build_prompt
from gatekeeper.services.rag.types import AnswerResult, PromptPolicy, RetrievalHit

logger = logging.getLogger(__name__)


def generate_answer(
    query: str,
    hits: Sequence[RetrievalHit],
    *,
    llm_client: LLMClient,
    policy: PromptPolicy = PromptPolicy.BLENDED,
) -> AnswerResult:
    prompt = build_prompt(query, hits, policy)
    logger.debug("generating answer with %s policy over %d chunks", policy.value, len(hits))

    try:
        answer = llm_client.generate(prompt=prompt, docs=[hit.chunk for hit in hits])
    except LLMClientError as exc:
        raise GenerationError(f"LLM request failed: {exc}") from exc

    return AnswerResult(answer=answer, sources=tuple(hits))
