from __future__ import annotations

import logging

from gatekeeper.llm import LLMClient
from gatekeeper.services.rag.generator import generate_answer
from gatekeeper.services.rag.retriever import DEFAULT_TOP_K, retrieve
from gatekeeper.services.rag.types import AnswerResult, PromptPolicy
from gatekeeper.services.rag.vector_store import VectorStore

logger = logging.getLogger(__name__)


def answer_query(
    query: str,
    *,
    store: VectorStore,
    llm_client: LLMClient,
    k: int = DEFAULT_TOP_K,
    policy: PromptPolicy = PromptPolicy.BLENDED,
) -> AnswerResult:
    logger.debug("retrieving top %d chunks for %r", k, query)
    hits = retrieve(query, store=store, k=k)

    result = generate_answer(query, hits, llm_client=llm_client, policy=policy)
    logger.info("answered query with %d retrieved chunks", len(hits))
    return result
