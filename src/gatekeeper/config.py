from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from gatekeeper.services.rag.types import ChunkingConfig, PromptPolicy


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_choice(value: str | None, *, default: str, choices: set[str]) -> str:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(f"Expected one of {sorted(choices)}, got {value!r}")
    return normalized


def _resolve_db_path(index_dir: str) -> str:
    explicit = os.getenv("GATEKEEPER_DB_PATH")
    if explicit:
        return explicit
    return str(Path(index_dir) / "gatekeeper.db")


@dataclass(frozen=True)
class Settings:
    index_dir: str
    db_path: str
    vector_store: str
    chunk_min_length: int
    chunk_max_length: int
    chunk_overlap: int
    top_k: int
    prompt_policy: PromptPolicy
    embed_provider: str
    embedding_dim: int
    ollama_base_url: str
    ollama_model: str
    ollama_embed_base_url: str
    ollama_embed_model: str
    ollama_timeout_seconds: float
    port: int
    log_level: str

    def chunking_config(self) -> ChunkingConfig:
        return ChunkingConfig(
            min_length=self.chunk_min_length,
            max_length=self.chunk_max_length,
            overlap=self.chunk_overlap,
        )


@lru_cache
def get_settings() -> Settings:
    index_dir = os.getenv("GATEKEEPER_INDEX_DIR", "data/index")
    ollama_base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/v1")
    return Settings(
        index_dir=index_dir,
        db_path=_resolve_db_path(index_dir),
        vector_store=_to_choice(
            os.getenv("GATEKEEPER_VECTOR_STORE"), default="sqlite", choices={"sqlite", "json"}
        ),
        chunk_min_length=_to_int(os.getenv("GATEKEEPER_CHUNK_MIN_LENGTH"), default=1000, minimum=0),
        chunk_max_length=_to_int(os.getenv("GATEKEEPER_CHUNK_MAX_LENGTH"), default=2000, minimum=1),
        chunk_overlap=_to_int(os.getenv("GATEKEEPER_CHUNK_OVERLAP"), default=100, minimum=0),
        top_k=_to_int(os.getenv("GATEKEEPER_TOP_K"), default=3, minimum=1),
        prompt_policy=PromptPolicy(
            _to_choice(
                os.getenv("GATEKEEPER_PROMPT_POLICY"),
                default=PromptPolicy.BLENDED.value,
                choices={policy.value for policy in PromptPolicy},
            )
        ),
        embed_provider=_to_choice(
            os.getenv("GATEKEEPER_EMBED_PROVIDER"), default="ollama", choices={"ollama", "hash"}
        ),
        embedding_dim=_to_int(os.getenv("GATEKEEPER_EMBEDDING_DIM"), default=64, minimum=8),
        ollama_base_url=ollama_base_url,
        ollama_model=os.getenv("OLLAMA_MODEL", "qwen2.5:7b-instruct-q4_K_M"),
        ollama_embed_base_url=os.getenv("OLLAMA_EMBED_BASE_URL", ollama_base_url),
        ollama_embed_model=os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text"),
        ollama_timeout_seconds=float(os.getenv("OLLAMA_TIMEOUT_SECONDS", "30")),
        port=_to_int(os.getenv("GATEKEEPER_PORT"), default=6969, minimum=1),
        log_level=os.getenv("GATEKEEPER_LOG_LEVEL", "INFO").upper(),
    )
