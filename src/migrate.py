"""Migration entrypoint: legacy visits → ships / visits / trips.

Usage:
    python -m src.migrate
    python -m src.migrate --store jsonl --source-file visits.jsonl --output-dir out/
    python -m src.migrate --flush-threshold 50 --log-level DEBUG
"""

import argparse
import json
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

from src.config import FLUSH_THRESHOLD, MigrationConfig
from src.migration import MigrationRunner, MigrationState
from src.store import DocumentStore, DynamoDBStore, JsonlStore
from src.utils import setup_logging

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def build_store(
    kind: str,
    source_file: Optional[str] = None,
    output_dir: Optional[str] = None,
) -> DocumentStore:
    """Create the store selected on the command line.

    Raises:
        ValueError: If the jsonl store is missing its paths
    """
    if kind == "jsonl":
        if not source_file or not output_dir:
            raise ValueError("--source-file and --output-dir are required for the jsonl store")
        return JsonlStore(source_file, output_dir)
    return DynamoDBStore()


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Migrate legacy visit documents to the normalized schema"
    )
    parser.add_argument(
        "--store",
        choices=["dynamodb", "jsonl"],
        default="dynamodb",
        help="Document store to read from and write to (default: dynamodb)",
    )
    parser.add_argument(
        "--source-file",
        default=None,
        help="Legacy visits export, one JSON object per line (jsonl store only)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for the migrated collections (jsonl store only)",
    )
    parser.add_argument(
        "--flush-threshold",
        type=int,
        default=FLUSH_THRESHOLD,
        help=f"Writes per commit group (default: {FLUSH_THRESHOLD})",
    )
    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Run ID (auto-generated if not provided)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(level=args.log_level, json_format=args.json_logs)

    try:
        config = MigrationConfig(flush_threshold=args.flush_threshold)
        store = build_store(args.store, args.source_file, args.output_dir)
    except ValueError as e:
        parser.error(str(e))

    logger.info(
        "Starting data migration",
        extra={"store": args.store, "flush_threshold": config.flush_threshold},
    )

    result = MigrationRunner(store, config, run_id=args.run_id).run()

    summary = result.to_dict()
    logger.info(
        f"Migration finished with state {result.state.value}",
        extra={"summary": summary},
    )
    print(json.dumps(summary, default=str, indent=2))

    # Exit with error code on failure
    return 0 if result.state is MigrationState.DONE else 1


if __name__ == "__main__":
    sys.exit(main())
