from __future__ import annotations

import math
from typing import Iterable, Protocol

from gatekeeper.services.rag.types import Chunk, RetrievalHit


class VectorStoreError(RuntimeError):
    pass


class VectorStore(Protocol):
    def index_documents(self, chunks: list[Chunk]) -> None: ...

    def search(self, query_text: str, k: int) -> list[RetrievalHit]: ...


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_by_similarity(
    query_embedding: list[float],
    candidates: Iterable[tuple[Chunk, list[float]]],
    *,
    k: int,
) -> list[RetrievalHit]:
    hits = [
        RetrievalHit(chunk=chunk, score=cosine(query_embedding, embedding))
        for chunk, embedding in candidates
    ]
    hits.sort(key=lambda hit: hit.score, reverse=True)
    return hits[:k]
