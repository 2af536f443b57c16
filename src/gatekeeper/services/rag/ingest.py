from __future__ import annotations

import logging

from gatekeeper.services.rag.chunker import chunk_text
from gatekeeper.services.rag.errors import RagError
from gatekeeper.services.rag.extractor import extract
from gatekeeper.services.rag.indexer import index_chunks
from gatekeeper.services.rag.types import ChunkingConfig, IngestOutcome, IngestSource
from gatekeeper.services.rag.vector_store import VectorStore

logger = logging.getLogger(__name__)


def ingest(
    source: IngestSource,
    *,
    store: VectorStore,
    config: ChunkingConfig | None = None,
) -> IngestOutcome:
    """Extract, chunk and index one source.

    Never raises for pipeline failures: they come back as an unsuccessful
    ``IngestOutcome`` with zero documents indexed.
    """
    config = config or ChunkingConfig()

    try:
        logger.debug("extracting %s input", type(source).__name__)
        document = extract(source)

        logger.debug("chunking %s (%d chars)", document.source_id, len(document.text))
        texts = chunk_text(document.text, config)

        logger.debug("indexing %d chunks from %s", len(texts), document.source_id)
        indexed = index_chunks(texts, source_id=document.source_id, store=store)
    except RagError as exc:
        logger.warning("ingestion failed: %s", exc)
        return IngestOutcome(success=False, documents_indexed=0, error=str(exc))

    logger.info("indexed %d chunks from %s", indexed, document.source_id)
    return IngestOutcome(success=True, documents_indexed=indexed)
