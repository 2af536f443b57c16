from __future__ import annotations

from pathlib import Path

from gatekeeper.config import Settings
from gatekeeper.llm import LLMClient, OllamaChatClient
from gatekeeper.services.rag.embedding_client import (
    EmbeddingClient,
    HashEmbeddingClient,
    OllamaEmbeddingClient,
)
from gatekeeper.services.rag.index_store import JsonVectorStore
from gatekeeper.services.rag.sqlite_store import SqliteVectorStore
from gatekeeper.services.rag.vector_store import VectorStore


def build_embedding_client(settings: Settings) -> EmbeddingClient:
    if settings.embed_provider == "hash":
        return HashEmbeddingClient(dimensions=settings.embedding_dim)
    return OllamaEmbeddingClient(
        base_url=settings.ollama_embed_base_url,
        model=settings.ollama_embed_model,
        timeout_seconds=settings.ollama_timeout_seconds,
    )


def build_vector_store(
    settings: Settings,
    embedding_client: EmbeddingClient | None = None,
) -> VectorStore:
    if embedding_client is None:
        embedding_client = build_embedding_client(settings)
    if settings.vector_store == "json":
        return JsonVectorStore(Path(settings.index_dir), embedding_client=embedding_client)
    return SqliteVectorStore(Path(settings.db_path), embedding_client=embedding_client)


def build_llm_client(settings: Settings) -> LLMClient:
    return OllamaChatClient(
        base_url=settings.ollama_base_url,
        model=settings.ollama_model,
        timeout_seconds=settings.ollama_timeout_seconds,
    )
