from __future__ import annotations

from pathlib import Path
from typing import Sequence

from gatekeeper.services.rag.types import RAW_TEXT_SOURCE_ID, PromptPolicy, RetrievalHit

NO_CONTEXT = "No relevant context found in the knowledge base."

_INSTRUCTIONS = {
    PromptPolicy.STRICT: (
        "You are a helpful assistant answering questions about the user's personal knowledge base.\n"
        "Use only the context provided to answer the question.\n"
        "If the answer cannot be found in the context, say that you don't know "
        "instead of making one up.\n"
    ),
    PromptPolicy.BLENDED: (
        "I will ask you a question and provide some additional context information.\n"
        "Assume this context information is factual and correct, as it comes from my own notes.\n"
        "If the question relates to the context, answer it using the context, "
        "together with general knowledge where it helps.\n"
        "If the question does not relate to the context, answer it from general knowledge "
        "without referring to the context.\n"
    ),
}


def source_label(source_id: str) -> str:
    if source_id == RAW_TEXT_SOURCE_ID:
        return source_id
    return Path(source_id).name


def format_context(hits: Sequence[RetrievalHit]) -> str:
    blocks = [
        f"[{source_label(hit.chunk.source_id)}#{hit.chunk.index}]\n{hit.chunk.text.strip()}"
        for hit in hits
        if hit.chunk.text.strip()
    ]
    return "\n\n---\n\n".join(blocks) or NO_CONTEXT


def build_prompt(
    query: str,
    hits: Sequence[RetrievalHit],
    policy: PromptPolicy = PromptPolicy.BLENDED,
) -> str:
    return (
        f"{_INSTRUCTIONS[policy]}\n"
        f"Context:\n{format_context(hits)}\n\n"
        f"Question: {query}\n"
        "Answer:"
    )
