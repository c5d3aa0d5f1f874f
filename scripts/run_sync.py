#!/usr/bin/env python
"""Run embedding sync jobs from the command line.

Usage:
    python -m scripts.run_sync stats
    python -m scripts.run_sync embed-pending --batch-size 20
    python -m scripts.run_sync reindex-all --batch-size 50
    python -m scripts.run_sync reembed WORK-123

Exits non-zero when any document failed, so the script can gate a
deployment or a cron alert.
"""

import argparse
import asyncio
import json
import sys
from typing import Any

from knowledge_search.config import get_settings
from knowledge_search.container import build_container
from knowledge_search.logging_config import get_logger, setup_logging
from knowledge_search.sync.models import BatchJobResult

logger = get_logger(__name__)


def print_batch_result(title: str, result: BatchJobResult) -> None:
    """Print a job summary."""
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)
    print(f"Processed: {result.processed}")
    print(f"Succeeded: {result.succeeded}")
    print(f"Failed: {result.failed}")
    if result.rate_limited:
        print("Stopped early: embedding provider rate limit")
    for failure in result.errors:
        print(f"  {failure.document_id}: {failure.message}")
    print("=" * 60)


async def run_command(args: argparse.Namespace) -> bool:
    """Run one sync command.

    Returns:
        True if the command completed without document failures.
    """
    settings = get_settings()
    setup_logging(level=args.log_level or settings.log_level)

    container = await build_container(settings)
    try:
        orchestrator = container.orchestrator

        if args.command == "stats":
            stats = await orchestrator.get_stats()
            output: dict[str, Any] = stats.model_dump()
            print(json.dumps(output, indent=2))
            return True

        if args.command == "embed-pending":
            result = await orchestrator.embed_pending(args.batch_size)
            print_batch_result("EMBED PENDING", result)
            return result.failed == 0

        if args.command == "reindex-all":
            result = await orchestrator.reindex_all(args.batch_size)
            print_batch_result("REINDEX ALL", result)
            return result.failed == 0

        if args.command == "reembed":
            ok = await orchestrator.reembed_only(args.document_id)
            print(f"{args.document_id}: {'re-embedded' if ok else 'FAILED'}")
            return ok

        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await container.close()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Synchronize document embeddings with the vector index",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("stats", help="Show embedding coverage")

    for name, help_text in (
        ("embed-pending", "Embed one batch of pending documents"),
        ("reindex-all", "Reset every document to pending and embed all"),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Documents per batch (default: SYNC_BATCH_SIZE)",
        )

    reembed = subparsers.add_parser("reembed", help="Re-embed one document")
    reembed.add_argument("document_id", help="Document identifier")

    args = parser.parse_args()

    ok = asyncio.run(run_command(args))

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
