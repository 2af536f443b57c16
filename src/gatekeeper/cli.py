from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from gatekeeper.clients import build_llm_client, build_vector_store
from gatekeeper.config import Settings, get_settings
from gatekeeper.services.rag import FileSource, TextSource, answer_query, ingest
from gatekeeper.services.rag.errors import RagError
from gatekeeper.services.rag.types import IngestSource

DEFAULT_QUESTION = "What do I do for fun?"
FILE_EXTENSIONS = {".pdf", ".md"}


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gatekeeper",
        description="A RAG for your own personal knowledge base",
    )
    parser.add_argument(
        "-a",
        "--ask",
        nargs="?",
        const=DEFAULT_QUESTION,
        default=None,
        metavar="QUERY",
        help="Query the knowledge base",
    )
    parser.add_argument(
        "-r",
        "--remember",
        default=None,
        metavar="CONTENT",
        help="A .pdf/.md file path or raw text to add to the knowledge base",
    )
    parser.add_argument(
        "-s",
        "--serve",
        nargs="?",
        type=int,
        const=settings.port,
        default=None,
        metavar="PORT",
        help=f"Start the HTTP server (default port {settings.port})",
    )
    return parser


def resolve_source(content: str) -> IngestSource:
    if Path(content).suffix.lower() in FILE_EXTENSIONS:
        return FileSource(path=content)
    return TextSource(data=content)


def _ask(query: str, settings: Settings) -> None:
    result = answer_query(
        query,
        store=build_vector_store(settings),
        llm_client=build_llm_client(settings),
        k=settings.top_k,
        policy=settings.prompt_policy,
    )
    print(result.answer, flush=True)


def _remember(content: str, settings: Settings) -> None:
    outcome = ingest(
        resolve_source(content),
        store=build_vector_store(settings),
        config=settings.chunking_config(),
    )
    if not outcome.success:
        raise RagError(outcome.error or "indexing failed")
    print(f"[gatekeeper] indexed {outcome.documents_indexed} chunks", flush=True)


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    parser = _build_parser(settings)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.ask is None and args.remember is None and args.serve is None:
        parser.print_help()
        raise SystemExit(2)

    try:
        if args.ask is not None:
            _ask(args.ask, settings)
        if args.remember is not None:
            _remember(args.remember, settings)
    except RagError as exc:
        print(f"[gatekeeper] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    if args.serve is not None:
        from gatekeeper.main import run

        print(f"[gatekeeper] serving on port {args.serve}", flush=True)
        run(port=args.serve)


if __name__ == "__main__":
    main()
