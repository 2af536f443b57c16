from __future__ import annotations

from array import array
import logging
from pathlib import Path
import sqlite3
import threading
import uuid

from gatekeeper.services.rag.embedding_client import EmbeddingClient
from gatekeeper.services.rag.types import Chunk, RetrievalHit
from gatekeeper.services.rag.vector_store import VectorStoreError, rank_by_similarity

logger = logging.getLogger(__name__)


def _encode_embedding(values: list[float]) -> bytes:
    return array("f", values).tobytes()


def _decode_embedding(blob: bytes) -> list[float]:
    vector = array("f")
    vector.frombytes(blob)
    return vector.tolist()


def _ensure_schema(connection: sqlite3.Connection) -> None:
    connection.executescript(
        """
        PRAGMA foreign_keys = ON;

        CREATE TABLE IF NOT EXISTS documents (
            id TEXT PRIMARY KEY,
            source_id TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS chunks (
            id TEXT PRIMARY KEY,
            doc_id TEXT NOT NULL,
            chunk_index INTEGER NOT NULL,
            text TEXT NOT NULL,
            embedding BLOB NOT NULL,
            embedding_dim INTEGER NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (doc_id) REFERENCES documents(id) ON DELETE CASCADE,
            UNIQUE (doc_id, chunk_index)
        );

        CREATE INDEX IF NOT EXISTS idx_chunks_doc_id ON chunks(doc_id);
        CREATE INDEX IF NOT EXISTS idx_documents_source_id ON documents(source_id);
        """
    )


class SqliteVectorStore:
    """Vector store kept in a local sqlite file.

    Each ``index_documents`` call embeds the whole batch first and then writes
    it in a single transaction, so a failed call leaves no rows behind. Writes
    from concurrent callers are serialized on a per-store lock.
    """

    def __init__(self, db_path: Path, *, embedding_client: EmbeddingClient) -> None:
        self._db_path = db_path
        self._embedding_client = embedding_client
        self._write_lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def index_documents(self, chunks: list[Chunk]) -> None:
        if not chunks:
            return

        embeddings = self._embedding_client.embed_texts([chunk.text for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise VectorStoreError("chunks and embeddings must have the same length")

        documents: dict[str, list[tuple[Chunk, list[float]]]] = {}
        for chunk, embedding in zip(chunks, embeddings):
            documents.setdefault(chunk.source_id, []).append((chunk, embedding))

        with self._write_lock:
            try:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
                with sqlite3.connect(self._db_path) as connection:
                    _ensure_schema(connection)
                    for source_id, entries in documents.items():
                        self._insert_document(connection, source_id, entries)
            except (sqlite3.Error, OSError) as exc:
                raise VectorStoreError(f"Failed to write {self._db_path}: {exc}") from exc

        logger.debug("stored %d chunks in %s", len(chunks), self._db_path)

    def _insert_document(
        self,
        connection: sqlite3.Connection,
        source_id: str,
        entries: list[tuple[Chunk, list[float]]],
    ) -> None:
        doc_id = uuid.uuid4().hex
        connection.execute(
            "INSERT INTO documents (id, source_id) VALUES (?, ?)",
            (doc_id, source_id),
        )
        connection.executemany(
            """
            INSERT INTO chunks (id, doc_id, chunk_index, text, embedding, embedding_dim)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    f"{doc_id}-{chunk.index:04d}",
                    doc_id,
                    chunk.index,
                    chunk.text,
                    sqlite3.Binary(_encode_embedding(embedding)),
                    len(embedding),
                )
                for chunk, embedding in entries
            ],
        )

    def load_chunks(self) -> list[tuple[Chunk, list[float]]]:
        if not self._db_path.exists():
            return []

        try:
            with sqlite3.connect(self._db_path) as connection:
                _ensure_schema(connection)
                rows = connection.execute(
                    """
                    SELECT d.source_id, c.chunk_index, c.text, c.embedding, c.embedding_dim
                    FROM chunks c
                    JOIN documents d ON d.id = c.doc_id
                    ORDER BY d.created_at, c.doc_id, c.chunk_index
                    """
                ).fetchall()
        except sqlite3.Error as exc:
            raise VectorStoreError(f"Failed to read {self._db_path}: {exc}") from exc

        entries: list[tuple[Chunk, list[float]]] = []
        for source_id, chunk_index, text, embedding_blob, embedding_dim in rows:
            if not isinstance(embedding_blob, bytes):
                continue
            embedding = _decode_embedding(embedding_blob)
            if len(embedding) != embedding_dim:
                continue
            entries.append((Chunk(text=text, source_id=source_id, index=chunk_index), embedding))
        return entries

    def search(self, query_text: str, k: int) -> list[RetrievalHit]:
        entries = self.load_chunks()
        if not entries:
            return []

        query_embedding = self._embedding_client.embed_texts([query_text])[0]
        return rank_by_similarity(query_embedding, entries, k=k)
