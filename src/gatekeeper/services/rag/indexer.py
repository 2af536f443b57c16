from __future__ import annotations

import logging
from typing import Sequence

from gatekeeper.services.rag.embedding_client import EmbeddingClientError
from gatekeeper.services.rag.errors import IndexingError
from gatekeeper.services.rag.types import Chunk
from gatekeeper.services.rag.vector_store import VectorStore, VectorStoreError

logger = logging.getLogger(__name__)


def index_chunks(texts: Sequence[str], *, source_id: str, store: VectorStore) -> int:
    """Attach provenance to ``texts`` and submit them to ``store`` as one batch.

    Returns the number of chunks indexed. Either the whole batch is accepted
    or ``IndexingError`` is raised and nothing counts as indexed.
    """
    chunks = [
        Chunk(text=text, source_id=source_id, index=index) for index, text in enumerate(texts)
    ]
    if not chunks:
        return 0

    try:
        store.index_documents(chunks)
    except (EmbeddingClientError, VectorStoreError) as exc:
        raise IndexingError(f"Failed to index {len(chunks)} chunks from {source_id}: {exc}") from exc

    logger.debug("indexed %d chunks from %s", len(chunks), source_id)
    return len(chunks)
