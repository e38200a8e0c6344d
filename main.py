"""CLI entry point for the recruiter candidate search service."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from recruitsearch.analytics.aggregator import AnalyticsAggregator
from recruitsearch.analytics.sink import SqliteEventSink
from recruitsearch.api import Services, handle
from recruitsearch.core.config import Settings
from recruitsearch.core.db import init_db
from recruitsearch.core.errors import RecruitSearchError
from recruitsearch.llm import available_providers, get_provider
from recruitsearch.pipeline.batch import BatchPipeline
from recruitsearch.pipeline.index_sync import IndexSynchronizer
from recruitsearch.pipeline.search_service import CandidateSearchService
from recruitsearch.resume.extractor import ResumeExtractor
from recruitsearch.resume.text import extract_text
from recruitsearch.search.backend import get_backend
from recruitsearch.storage.blob import CandidateRepository, LocalDocumentStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "config/settings.yaml"

# Commands that never touch the search capability.
_OFFLINE_COMMANDS = {"parse-query", "extract-resume", "trends"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG})",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    parser = argparse.ArgumentParser(
        description="Candidate search - query parsing, ranking and resume index sync",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- parse-query ---
    parse_parser = subparsers.add_parser(
        "parse-query", parents=[common],
        help="Interpret a free-text query and show the search it would run (offline)",
    )
    parse_parser.add_argument("query", help="Free-text recruiter query")

    # --- extract-resume ---
    extract_parser = subparsers.add_parser(
        "extract-resume", parents=[common],
        help="Extract skills and experience from a resume file",
    )
    extract_parser.add_argument("--file", required=True, help="Path to resume (txt, pdf, docx)")
    extract_parser.add_argument(
        "--llm",
        action="store_true",
        help="Use the generative provider instead of pattern extraction",
    )
    extract_parser.add_argument(
        "--provider",
        choices=available_providers(),
        help="Generative provider (default: llm.provider from config)",
    )

    # --- search ---
    search_parser = subparsers.add_parser("search", parents=[common], help="Search candidates")
    search_parser.add_argument("query", nargs="?", default="*", help="Query text (default: *)")
    search_parser.add_argument(
        "--natural",
        action="store_true",
        help="Interpret the query as natural language",
    )
    search_parser.add_argument("--semantic", action="store_true", help="Run a semantic search")
    search_parser.add_argument("--skill", action="append", default=[], help="Skill filter (repeatable)")
    search_parser.add_argument("--location", default="", help="Location filter")
    search_parser.add_argument("--page", type=int, default=1)
    search_parser.add_argument("--size", type=int, default=None)
    search_parser.add_argument("--sort-by", default=None, help="relevance, name, location, created, updated")
    search_parser.add_argument("--sort-order", default="asc", choices=["asc", "desc"])

    # --- match ---
    match_parser = subparsers.add_parser("match", parents=[common], help="Match candidates to a job")
    match_parser.add_argument("--job", required=True, help="Path to job description YAML")

    # --- batch ---
    batch_parser = subparsers.add_parser(
        "batch", parents=[common],
        help="Process stored resumes that have not been extracted yet",
    )
    batch_parser.add_argument("--max-resumes", type=int, default=None)
    batch_parser.add_argument("--concurrency", type=int, default=None)

    # --- sync-stats ---
    subparsers.add_parser(
        "sync-stats", parents=[common],
        help="Show processing and index drift statistics",
    )

    # --- trends ---
    trends_parser = subparsers.add_parser("trends", parents=[common], help="Show search trends")
    trends_parser.add_argument("--days", type=int, default=30)

    # --- init-index ---
    init_parser = subparsers.add_parser("init-index", parents=[common], help="Create the search index")
    init_parser.add_argument("--force", action="store_true", help="Drop and recreate an existing index")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Load settings; the default path may be absent, an explicit one may not."""
    if path == DEFAULT_CONFIG and not Path(path).exists():
        logger.debug("No %s found, using default settings", path)
        return Settings()
    return Settings.from_yaml(path)


def build_services(settings: Settings, args: argparse.Namespace) -> Services:
    """Construct every capability handle the command needs."""
    conn = init_db(settings.database.path)
    repository = CandidateRepository(
        LocalDocumentStore(settings.storage.root),
        settings.storage.candidates_container,
        settings.storage.resumes_container,
    )

    provider = None
    if settings.llm.enabled or getattr(args, "llm", False):
        provider = get_provider(getattr(args, "provider", None) or settings.llm.provider)
    extractor = ResumeExtractor(provider, settings.llm)

    analytics = AnalyticsAggregator(conn, settings.analytics)
    services = Services(analytics=analytics, extractor=extractor, repository=repository)
    if args.command in _OFFLINE_COMMANDS:
        return services

    backend = get_backend(settings.search)
    sink = SqliteEventSink(conn) if settings.analytics.enabled else None
    synchronizer = IndexSynchronizer(backend, settings.search.index_name)
    services.search = CandidateSearchService(backend, settings, sink)
    services.synchronizer = synchronizer
    services.pipeline = BatchPipeline(extractor, repository, synchronizer, settings.batch, conn)
    return services


def request_for(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    """Translate parsed CLI arguments into an operation name and JSON body."""
    if args.command == "parse-query":
        return "parse-query", {"query": args.query}

    if args.command == "extract-resume":
        path = Path(args.file)
        if not path.exists():
            msg = f"Resume file not found: {path}"
            raise FileNotFoundError(msg)
        return "extract-resume", {"resumeFile": str(path)}

    if args.command == "search":
        if args.natural:
            return "natural-language-search", {"query": args.query, "top": args.size}
        filters: dict[str, Any] = {}
        if args.skill:
            filters["skills"] = args.skill
        if args.location:
            filters["location"] = args.location
        if args.semantic:
            return "semantic-search", {"query": args.query, "top": args.size or 20, "filters": filters}
        return "search", {
            "query": args.query,
            "filters": filters,
            "page": args.page,
            "size": args.size,
            "sortBy": args.sort_by,
            "sortOrder": args.sort_order,
        }

    if args.command == "match":
        path = Path(args.job)
        if not path.exists():
            msg = f"Job file not found: {path}"
            raise FileNotFoundError(msg)
        return "match-job", {"job": yaml.safe_load(path.read_text()) or {}}

    if args.command == "batch":
        return "batch-process", {
            "maxResumes": args.max_resumes,
            "maxConcurrency": args.concurrency,
        }

    if args.command == "sync-stats":
        return "processing-stats", {}

    if args.command == "trends":
        return "search-trends", {"days": args.days}

    return "index-init", {"force": args.force}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        operation, body = request_for(args)
        services = build_services(settings, args)
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if operation == "extract-resume":
        # The JSON surface takes resume text, so decode the file here.
        path = Path(body.pop("resumeFile"))
        try:
            body["resumeText"] = extract_text(path.read_bytes(), path.name)
        except (RecruitSearchError, ImportError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    status, payload = handle(operation, body, services)
    if status >= 400 and "error" in payload:
        print(f"Error: {payload['error']['message']}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":
    main()
