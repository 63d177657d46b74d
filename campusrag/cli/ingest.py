# =============================================================================
# campusrag/cli/ingest.py -- Knowledge-base CLI
# =============================================================================
#
# Builds and queries the ChromaDB collection of course fact sheets, help-desk
# FAQ rows and thesis registry entries.
#
# Supported subcommands:
#
#   courses     -- Ingest every fact sheet PDF under <base>/<program>/
#   pdf         -- Ingest one fact sheet PDF
#   faq         -- Ingest the FAQ CSV export
#   theses      -- Ingest the thesis registry workbook
#   ask         -- Answer one question from the collection (streamed)
#   collections -- List the collections in the store
#
# Usage examples:
#   python -m campusrag.cli.ingest courses --base ./data/courses --program MBI
#   python -m campusrag.cli.ingest pdf --file ./8126.pdf --program macfin
#   python -m campusrag.cli.ingest faq --file ./data/faq.csv
#   python -m campusrag.cli.ingest ask "Which exams does 8,126 have?"
# =============================================================================

"""Standalone CLI for building and querying the campusrag collection.

Usage::

    python -m campusrag.cli.ingest courses
    python -m campusrag.cli.ingest faq --file ./data/faq.csv
    python -m campusrag.cli.ingest ask "Can I get the full syllabus for MBI?"

Logs go to stderr; results and streamed answers go to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

import structlog

from campusrag.config.loader import load_config
from campusrag.config.settings import Settings
from campusrag.utils.errors import ConfigurationError
from campusrag.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Service factories
# ---------------------------------------------------------------------------


def _build_providers(app_settings: Settings, config: dict[str, Any]):  # noqa: ANN202
    """Construct the embedding provider and vector store.

    Imports are deferred so ``--help`` does not load chromadb or the
    openai SDK.

    Raises
    ------
    ConfigurationError
        If no OpenAI API key is configured.
    """
    if not app_settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set", provider_name="openai")

    from campusrag.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
    from campusrag.providers.vector_store.chromadb_provider import ChromaDBProvider

    store_config = config.get("vector_store", {})
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    vector_store = ChromaDBProvider(
        persist_directory=store_config.get("persist_dir", app_settings.chromadb_persist_dir),
        collection_name=store_config.get("collection", app_settings.chromadb_collection),
    )
    return embedding_provider, vector_store


def _build_ingestion_service(app_settings: Settings, config: dict[str, Any]):  # noqa: ANN202
    """Wire chunker, extractor, embedding provider and store into an IngestionService."""
    from campusrag.services.ingestion.chunker import DEFAULT_SEPARATORS, TextChunker
    from campusrag.services.ingestion.deduplicator import DuplicatePolicy
    from campusrag.services.ingestion.ingestion_service import IngestionService
    from campusrag.services.ingestion.metadata_extractor import MetadataExtractor

    embedding_provider, vector_store = _build_providers(app_settings, config)
    ingestion = config.get("ingestion", {})

    chunker = TextChunker(
        chunk_size=ingestion.get("chunk_size", app_settings.chunk_size),
        overlap=ingestion.get("chunk_overlap", app_settings.chunk_overlap),
        separators=tuple(ingestion.get("separators") or DEFAULT_SEPARATORS),
    )
    return IngestionService(
        chunker=chunker,
        metadata_extractor=MetadataExtractor(debug=app_settings.log_level.upper() == "DEBUG"),
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        collection_name=config.get("vector_store", {}).get("collection", app_settings.chromadb_collection),
        batch_size=ingestion.get("batch_size", app_settings.ingest_batch_size),
        duplicate_policy=DuplicatePolicy(ingestion.get("duplicate_policy", app_settings.duplicate_policy)),
    )


def _build_chat_service(app_settings: Settings, config: dict[str, Any]):  # noqa: ANN202
    """Wire embedding provider, store, blender and chat model into a ChatService."""
    from campusrag.providers.llm.openai_provider import OpenAILLMProvider
    from campusrag.services.retrieval.chat_service import ChatService, load_system_prompt
    from campusrag.services.retrieval.retrieval_blender import RetrievalBlender

    embedding_provider, vector_store = _build_providers(app_settings, config)
    retrieval = config.get("retrieval", {})
    blender = RetrievalBlender(
        vector_store,
        limit=retrieval.get("limit", app_settings.retrieval_limit),
        per_channel_limit=retrieval.get("per_channel_limit", app_settings.retrieval_per_channel_limit),
    )
    return ChatService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        llm=OpenAILLMProvider(settings=app_settings),
        blender=blender,
        system_prompt=load_system_prompt(app_settings.system_prompt_path),
    )


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _print_result(result) -> None:  # noqa: ANN001
    print(f"  {result.source}")
    print(f"    Created:    {result.records_created}")
    print(f"    Updated:    {result.records_updated}")
    print(f"    Duplicates: {result.duplicates}")
    print(f"    Failures:   {result.failures}")
    print(f"    Time:       {result.ingestion_time:.2f}s")


async def _handle_courses(args: argparse.Namespace, service, config: dict[str, Any]) -> int:  # noqa: ANN001
    """Ingest every program folder."""
    ingestion = config.get("ingestion", {})
    base = args.base or ingestion.get("course_base_path", "./data/courses")
    programs = args.program or ingestion.get("programs", [])
    print(f"Ingesting course fact sheets from {base} ({', '.join(programs)})")

    await service.ensure_collection()
    results = await service.ingest_program_directory(base, programs)

    print("\nCourse ingestion complete:")
    print(f"  Files processed: {len(results)}")
    print(f"  Records created: {sum(r.records_created for r in results)}")
    print(f"  Failures:        {sum(r.failures for r in results)}")
    return 0


async def _handle_pdf(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    """Ingest a single fact sheet."""
    print(f"Ingesting PDF: {args.file} (program: {args.program})")
    await service.ensure_collection()
    result = await service.ingest_course_pdf(args.file, args.program)
    print("\nIngestion complete:")
    _print_result(result)
    return 0 if result.failures == 0 else 1


async def _handle_faq(args: argparse.Namespace, service, app_settings: Settings) -> int:  # noqa: ANN001
    """Ingest the FAQ CSV export."""
    path = args.file or app_settings.faq_csv_path
    print(f"Ingesting FAQ: {path}")
    await service.ensure_collection()
    result = await service.ingest_faq_csv(path)
    print("\nIngestion complete:")
    _print_result(result)
    return 0


async def _handle_theses(args: argparse.Namespace, service, app_settings: Settings) -> int:  # noqa: ANN001
    """Ingest the thesis registry workbook."""
    path = args.file or app_settings.thesis_sheet_path
    print(f"Ingesting theses: {path}")
    await service.ensure_collection()
    result = await service.ingest_theses(path)
    print("\nIngestion complete:")
    _print_result(result)
    return 0


async def _handle_ask(args: argparse.Namespace, service) -> int:  # noqa: ANN001
    """Stream the answer to one question."""
    history = [{"role": "user", "content": args.question}]
    async for token in service.stream_answer(history):
        sys.stdout.write(token)
        sys.stdout.flush()
    sys.stdout.write("\n")
    return 0


async def _handle_collections(app_settings: Settings, config: dict[str, Any]) -> int:
    """List collections in the store."""
    _, vector_store = _build_providers(app_settings, config)
    if not vector_store.is_available():
        print("Vector store not available.")
        return 1

    names = await vector_store.list_collections()
    if not names:
        print("No collections.")
    for name in sorted(names):
        print(name)
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the campusrag CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m campusrag.cli.ingest",
        description="Build and query the campusrag course/FAQ/thesis collection.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="YAML configuration file (default: config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- courses --
    courses_parser = subparsers.add_parser("courses", help="Ingest all program folders")
    courses_parser.add_argument("--base", help="Folder containing one subfolder per program")
    courses_parser.add_argument(
        "--program",
        action="append",
        help="Program folder to ingest (repeatable; default: all configured programs)",
    )

    # -- pdf --
    pdf_parser = subparsers.add_parser("pdf", help="Ingest one fact sheet PDF")
    pdf_parser.add_argument("--file", required=True, help="Path to the PDF file")
    pdf_parser.add_argument("--program", required=True, help="Program the course belongs to")

    # -- faq --
    faq_parser = subparsers.add_parser("faq", help="Ingest the FAQ CSV export")
    faq_parser.add_argument("--file", help="Path to the CSV file (default: FAQ_CSV_PATH)")

    # -- theses --
    thesis_parser = subparsers.add_parser("theses", help="Ingest the thesis registry workbook")
    thesis_parser.add_argument("--file", help="Path to the XLSX file (default: THESIS_SHEET_PATH)")

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Answer a question from the collection")
    ask_parser.add_argument("question", help="Question text")

    # -- collections --
    subparsers.add_parser("collections", help="List collections in the store")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _dispatch(args: argparse.Namespace, app_settings: Settings, config: dict[str, Any]) -> int:
    if args.command == "collections":
        return await _handle_collections(app_settings, config)
    if args.command == "ask":
        return await _handle_ask(args, _build_chat_service(app_settings, config))

    service = _build_ingestion_service(app_settings, config)
    if args.command == "courses":
        return await _handle_courses(args, service, config)
    if args.command == "pdf":
        return await _handle_pdf(args, service)
    if args.command == "faq":
        return await _handle_faq(args, service, app_settings)
    return await _handle_theses(args, service, app_settings)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses the subcommand, loads Settings and the YAML config, configures
    logging and dispatches to the handler.  Any exception escaping a
    handler is logged and the process exits with status 1.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(app_settings.log_level)

    try:
        config = load_config(args.config, app_settings)
        exit_code = asyncio.run(_dispatch(args, app_settings, config))
    except Exception as exc:
        logger.exception("cli_failed", command=args.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
