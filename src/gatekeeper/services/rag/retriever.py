from __future__ import annotations

import logging

from gatekeeper.services.rag.embedding_client import EmbeddingClientError
from gatekeeper.services.rag.errors import RetrievalError
from gatekeeper.services.rag.types import RetrievalHit
from gatekeeper.services.rag.vector_store import VectorStore, VectorStoreError

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3


def retrieve(query_text: str, *, store: VectorStore, k: int = DEFAULT_TOP_K) -> list[RetrievalHit]:
    normalized_query = query_text.strip()
    if not normalized_query:
        raise RetrievalError("query must not be empty")
    if k < 1:
        raise RetrievalError("k must be >= 1")

    try:
        hits = store.search(normalized_query, k)
    except (EmbeddingClientError, VectorStoreError) as exc:
        raise RetrievalError(f"Vector store search failed: {exc}") from exc

    logger.debug("retrieved %d hits for %r", len(hits), normalized_query)
    return hits[:k]
