from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import Callable

from markdown_it import MarkdownIt
from markdown_it.token import Token
from pypdf import PdfReader

from gatekeeper.services.rag.errors import ExtractionError, SourceReadError, UnsupportedFormatError
from gatekeeper.services.rag.types import (
    RAW_TEXT_SOURCE_ID,
    Document,
    FileSource,
    IngestSource,
    TextSource,
)

logger = logging.getLogger(__name__)

Extractor = Callable[[Path], str]

_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")
_markdown = MarkdownIt("commonmark")
_extractors: dict[str, Extractor] = {}


def register_extractor(extension: str, extractor: Extractor) -> None:
    normalized = extension.lower()
    if not normalized.startswith("."):
        normalized = f".{normalized}"
    _extractors[normalized] = extractor


def supported_extensions() -> set[str]:
    return set(_extractors)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceReadError(f"Unable to read {path}: {exc}") from exc


def extract_pdf(path: Path) -> str:
    data = _read_bytes(path)
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:  # malformed files also raise KeyError, TypeError, struct.error
        raise ExtractionError(f"Failed to decode PDF {path}: {exc}") from exc
    return "\n\n".join(pages)


def _render_inline(token: Token) -> str:
    parts: list[str] = []
    for child in token.children or []:
        if child.type in {"text", "code_inline", "image"}:
            parts.append(child.content)
        elif child.type in {"softbreak", "hardbreak"}:
            parts.append("\n")
    return "".join(parts)


def markdown_to_text(markdown: str) -> str:
    """Strip Markdown formatting, keeping heading and list markers and code contents."""
    parts: list[str] = []
    depth = 0
    prefix = ""

    for token in _markdown.parse(markdown):
        if token.type in {"bullet_list_open", "ordered_list_open"}:
            depth += 1
        elif token.type in {"bullet_list_close", "ordered_list_close"}:
            depth -= 1
            if depth == 0:
                parts.append("\n")
        elif token.type == "heading_open":
            prefix += "#" * int(token.tag[1:]) + " "
        elif token.type == "list_item_open":
            marker = f"{token.info}{token.markup}" if token.info else token.markup
            prefix = "  " * (depth - 1) + f"{marker} "
        elif token.type == "inline":
            parts.append(prefix + _render_inline(token))
            parts.append("\n" if depth else "\n\n")
            prefix = ""
        elif token.type in {"fence", "code_block"}:
            parts.append(prefix + token.content)
            parts.append("\n" if depth else "\n\n")
            prefix = ""

    return _EXCESS_BLANK_LINES.sub("\n\n", "".join(parts)).strip()


def extract_markdown(path: Path) -> str:
    data = _read_bytes(path)
    try:
        content = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ExtractionError(f"Markdown file {path} is not valid UTF-8: {exc}") from exc
    return markdown_to_text(content)


register_extractor(".pdf", extract_pdf)
register_extractor(".md", extract_markdown)


def extract_file(file_path: str | Path) -> Document:
    path = Path(file_path).resolve()
    extension = path.suffix.lower()
    extractor = _extractors.get(extension)
    if extractor is None:
        raise UnsupportedFormatError(f"Unsupported file type: {extension or '<none>'}")

    logger.debug("extracting %s with %s", path, extractor.__name__)
    return Document(text=extractor(path), source_id=str(path))


def extract(source: IngestSource) -> Document:
    if isinstance(source, FileSource):
        return extract_file(source.path)
    if isinstance(source, TextSource):
        return Document(text=source.data, source_id=RAW_TEXT_SOURCE_ID)
    raise TypeError(f"Unknown ingest source: {source!r}")
