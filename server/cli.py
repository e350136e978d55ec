"""Command line entry point: ``datatables-mcp serve|index|stats``."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from config.settings import Settings
from indexer.sqlite_adapter import DatabaseNotFoundError, DocumentationStore
from observability.logging import setup_logging
from pipelines.html_ingest import DocumentationIndexer
from sources.loader import CATALOG_KINDS, load_source_config

from .mcp_server import MCPServer
from .tools import DocumentationTools

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="datatables-mcp",
        description="DataTables documentation search server (MCP over stdio)",
    )
    parser.add_argument("--db", help="Path to the SQLite database")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines on stderr")

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="Run the MCP server on stdin/stdout")

    index = commands.add_parser("index", help="Scrape the documentation into the database")
    index.add_argument(
        "--only", nargs="+", choices=CATALOG_KINDS, metavar="KIND",
        help=f"Catalog kinds to index ({', '.join(CATALOG_KINDS)})",
    )
    index.add_argument("--refresh", action="store_true", help="Re-index pages already stored")
    index.add_argument("--delay", type=float, help="Seconds to wait between page fetches")

    commands.add_parser("stats", help="Show document counts per type")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command line overrides applied."""
    data = Settings.from_env().model_dump()
    if args.db:
        data["database"]["sqlite_path"] = args.db
    if args.log_level:
        data["logging"]["level"] = args.log_level
    if args.log_json:
        data["logging"]["use_json"] = True
    if getattr(args, "delay", None) is not None:
        data["crawl"]["request_delay"] = args.delay
    return Settings.model_validate(data)


def run_serve(settings: Settings) -> int:
    store = DocumentationStore(settings.database.sqlite_path)
    if not store.db_path.exists():
        logger.warning(str(DatabaseNotFoundError(store.db_path)))

    server = MCPServer(DocumentationTools(store))
    try:
        asyncio.run(server.serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        store.close()
    return 0


def run_index(settings: Settings, kinds: Optional[List[str]], refresh: bool) -> int:
    source = load_source_config(settings.crawl.source_file)
    if source is None:
        logger.error(f"Could not load crawl catalog: {settings.crawl.source_file}")
        return 1

    with DocumentationStore(settings.database.sqlite_path) as store:
        indexer = DocumentationIndexer(
            store,
            source,
            request_timeout=settings.crawl.request_timeout,
            request_delay=settings.crawl.request_delay,
            discovery_delay=settings.crawl.discovery_delay,
            user_agent=settings.crawl.user_agent,
        )
        stats = indexer.index_all(kinds or CATALOG_KINDS, refresh=refresh)

    logger.info(f"Indexing took {stats.duration}")
    return 0 if stats.failed == 0 or stats.indexed > 0 else 1


def run_stats(settings: Settings) -> int:
    try:
        with DocumentationStore(settings.database.sqlite_path) as store:
            totals = store.get_stats()
            doc_types = store.get_doc_types()
    except DatabaseNotFoundError as e:
        logger.error(str(e))
        return 1

    print(f"Database: {settings.database.sqlite_path}")
    print(f"Documents: {totals['total_docs']}")
    print(f"Sections: {totals['sections']}")
    for row in doc_types:
        print(f"  {row['doc_type']}: {row['count']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.log_file,
        use_json=settings.logging.use_json,
    )

    command = args.command or "serve"
    if command == "index":
        return run_index(settings, args.only, args.refresh)
    if command == "stats":
        return run_stats(settings)
    return run_serve(settings)


if __name__ == "__main__":
    sys.exit(main())
