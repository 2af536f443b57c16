from __future__ import annotations

import re

from gatekeeper.services.rag.errors import ChunkingConfigError
from gatekeeper.services.rag.types import ChunkingConfig

# A sentence ends at terminal punctuation (plus closing quotes or brackets)
# followed by whitespace, or at a blank line.
_SENTENCE_BOUNDARY = re.compile(r"[.!?]+[\"'’”)\]]*\s+|\n[ \t]*\n\s*")


def _validate(config: ChunkingConfig) -> None:
    if config.split_unit != "sentence":
        raise ChunkingConfigError(f"Unsupported split unit: {config.split_unit!r}")
    if config.max_length <= 0:
        raise ChunkingConfigError("max_length must be > 0")
    if config.min_length < 0:
        raise ChunkingConfigError("min_length must be >= 0")
    if config.min_length > config.max_length:
        raise ChunkingConfigError("min_length must not exceed max_length")
    if config.overlap < 0:
        raise ChunkingConfigError("overlap must be >= 0")


def split_sentences(text: str) -> list[str]:
    """Split text into sentences, each keeping its trailing whitespace.

    Concatenating the result gives back the input with leading whitespace
    removed.
    """
    normalized = text.replace("\r\n", "\n").lstrip()
    sentences: list[str] = []
    cursor = 0

    for match in _SENTENCE_BOUNDARY.finditer(normalized):
        sentences.append(normalized[cursor : match.end()])
        cursor = match.end()

    if cursor < len(normalized):
        sentences.append(normalized[cursor:])

    return [sentence for sentence in sentences if sentence.strip()]


def _join(sentences: list[str]) -> str:
    return "".join(sentences).strip()


def _overlap_seed(sentences: list[str], overlap: int) -> list[str]:
    # Whole trailing sentences until at least `overlap` characters are kept,
    # never the entire chunk.
    if overlap <= 0:
        return []

    seed: list[str] = []
    for sentence in reversed(sentences[1:]):
        seed.insert(0, sentence)
        if len(_join(seed)) >= overlap:
            break
    return seed


def chunk_text(text: str, config: ChunkingConfig | None = None) -> list[str]:
    config = config or ChunkingConfig()
    _validate(config)

    chunks: list[str] = []
    buffer: list[str] = []
    fresh = 0

    for sentence in split_sentences(text):
        if len(sentence.strip()) > config.max_length:
            if fresh:
                chunks.append(_join(buffer))
            chunks.append(sentence.strip())
            buffer, fresh = [], 0
            continue

        if fresh and len(_join(buffer + [sentence])) > config.max_length:
            if len(_join(buffer)) >= config.min_length:
                chunks.append(_join(buffer))
                buffer, fresh = _overlap_seed(buffer, config.overlap), 0
                if buffer and len(_join(buffer + [sentence])) > config.max_length:
                    buffer = []

        buffer.append(sentence)
        fresh += 1

    if fresh:
        chunks.append(_join(buffer))

    return chunks
