from gatekeeper.services.rag.ingest import ingest
from gatekeeper.services.rag.query import answer_query
from gatekeeper.services.rag.types import (
    AnswerResult,
    ChunkingConfig,
    FileSource,
    IngestOutcome,
    PromptPolicy,
    RetrievalHit,
    TextSource,
)

__all__ = [
    "AnswerResult",
    "ChunkingConfig",
    "FileSource",
    "IngestOutcome",
    "PromptPolicy",
    "RetrievalHit",
    "TextSource",
    "answer_query",
    "ingest",
]
