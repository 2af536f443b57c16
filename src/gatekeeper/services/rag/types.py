from dataclasses import dataclass
from enum import Enum

RAW_TEXT_SOURCE_ID = "raw-text-input"


class PromptPolicy(str, Enum):
    STRICT = "strict"
    BLENDED = "blended"


@dataclass(frozen=True)
class FileSource:
    path: str


@dataclass(frozen=True)
class TextSource:
    data: str


IngestSource = FileSource | TextSource


@dataclass(frozen=True)
class Document:
    text: str
    source_id: str


@dataclass(frozen=True)
class Chunk:
    text: str
    source_id: str
    index: int


@dataclass(frozen=True)
class ChunkingConfig:
    min_length: int = 1000
    max_length: int = 2000
    overlap: int = 100
    split_unit: str = "sentence"


@dataclass(frozen=True)
class RetrievalHit:
    chunk: Chunk
    score: float


@dataclass(frozen=True)
class IngestOutcome:
    success: bool
    documents_indexed: int
    error: str | None = None


@dataclass(frozen=True)
class AnswerResult:
    answer: str
    sources: tuple[RetrievalHit, ...] = ()
