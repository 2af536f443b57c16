from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
import threading

from gatekeeper.services.rag.embedding_client import EmbeddingClient
from gatekeeper.services.rag.types import Chunk, RetrievalHit
from gatekeeper.services.rag.vector_store import VectorStoreError, rank_by_similarity

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"


class JsonVectorStore:
    """Dev-local vector store: every record lives in one JSON file.

    The file is rewritten through a temporary sibling and ``os.replace`` so
    readers never observe a half-written index.
    """

    def __init__(self, index_dir: Path, *, embedding_client: EmbeddingClient) -> None:
        self._index_file = index_dir / INDEX_FILENAME
        self._embedding_client = embedding_client
        self._write_lock = threading.Lock()

    @property
    def index_file(self) -> Path:
        return self._index_file

    def _load_records(self) -> list[dict[str, object]]:
        if not self._index_file.exists():
            return []

        try:
            payload = json.loads(self._index_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise VectorStoreError(f"Failed to read {self._index_file}: {exc}") from exc

        records = payload.get("records") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise VectorStoreError(
                f"Invalid index payload in {self._index_file}: 'records' must be a list"
            )
        return records

    def index_documents(self, chunks: list[Chunk]) -> None:
        if not chunks:
            return

        embeddings = self._embedding_client.embed_texts([chunk.text for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise VectorStoreError("chunks and embeddings must have the same length")

        with self._write_lock:
            records = self._load_records()
            records.extend(
                {
                    "source_id": chunk.source_id,
                    "chunk_index": chunk.index,
                    "text": chunk.text,
                    "embedding": embedding,
                }
                for chunk, embedding in zip(chunks, embeddings)
            )
            payload = {
                "version": "r1",
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "chunk_count": len(records),
                "records": records,
            }

            tmp_file = self._index_file.with_suffix(".json.tmp")
            try:
                self._index_file.parent.mkdir(parents=True, exist_ok=True)
                tmp_file.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
                os.replace(tmp_file, self._index_file)
            except OSError as exc:
                raise VectorStoreError(f"Failed to write {self._index_file}: {exc}") from exc
            finally:
                if tmp_file.exists():
                    tmp_file.unlink()

        logger.debug("stored %d chunks in %s", len(chunks), self._index_file)

    def search(self, query_text: str, k: int) -> list[RetrievalHit]:
        entries: list[tuple[Chunk, list[float]]] = []
        for record in self._load_records():
            embedding = record.get("embedding")
            source_id = record.get("source_id")
            chunk_index = record.get("chunk_index")
            text = record.get("text")
            if (
                not isinstance(embedding, list)
                or not isinstance(source_id, str)
                or not isinstance(chunk_index, int)
                or not isinstance(text, str)
            ):
                continue
            chunk = Chunk(text=text, source_id=source_id, index=chunk_index)
            entries.append((chunk, [float(value) for value in embedding]))

        if not entries:
            return []

        query_embedding = self._embedding_client.embed_texts([query_text])[0]
        return rank_by_similarity(query_embedding, entries, k=k)
