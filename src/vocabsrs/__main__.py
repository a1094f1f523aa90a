"""Command-line entry point for the review engine."""
import argparse
import asyncio
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from vocabsrs.config import ensure_directories, settings
from vocabsrs.engine import VocabEngine
from vocabsrs.errors import VocabSrsError
from vocabsrs.logging_config import setup_logging
from vocabsrs.models.base import SessionLocal, init_db
from vocabsrs.monitoring import start_monitoring
from vocabsrs.services.sql_store import SqlAlchemyStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocabsrs", description="Spaced-repetition review engine")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("due", help="Count (item, skill) pairs due today")
    subparsers.add_parser("stats", help="Print statistics and unlock achievements")
    intervals = subparsers.add_parser("intervals", help="Show or replace the interval ladder")
    intervals.add_argument("values", nargs="*", help="New interval values in days")
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run one command against the configured database."""
    init_db()
    db = SessionLocal()
    try:
        engine = VocabEngine(SqlAlchemyStore(db))
        if args.command == "due":
            print(await engine.count_due_queue())
        elif args.command == "stats":
            stats = await engine.compute_stats()
            for name, value in asdict(stats).items():
                print(f"{name}: {value}")
            for code in await engine.evaluate_achievements(stats):
                print(f"achievement unlocked: {code}")
        elif args.command == "intervals":
            ladder = await engine.update_intervals(args.values) if args.values else await engine.get_ladder()
            print(" ".join(str(days) for days in ladder.intervals))
        return 0
    finally:
        db.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    ensure_directories()

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)
        logger.info("Metrics exposed on port %d", settings.monitoring.port)

    try:
        return asyncio.run(run(args))
    except VocabSrsError as e:
        logger.error("%s", str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
