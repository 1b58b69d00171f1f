#!/usr/bin/env python3
"""
Run the daily notification maintenance cycle once and print its summary.

This script:
1. Rolls due recurring schedules forward
2. Creates reminder, overdue and invitation notifications
3. Removes stale invitations and old read notifications

Usage:
  python scripts/run_daily_tasks.py [--now 2026-01-31T09:00:00+00:00]

Intended for a system cron; exits non-zero when the run could not start.
"""

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config.log_config import configure_logging
from src.config.settings import get_settings
from src.infrastructure.db.session import create_engine, create_session_factory
from src.infrastructure.push.factory import build_push_sender
from src.infrastructure.scheduler.runner import run_scheduled_daily_tasks

logger = logging.getLogger("run_daily_tasks")


async def main(now: datetime | None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    engine = create_engine(settings.database_url)
    try:
        summary = await run_scheduled_daily_tasks(
            create_session_factory(engine),
            settings,
            push_sender=build_push_sender(settings),
            now=now,
        )
    except Exception as exc:
        logger.error("Daily tasks could not run: %s", exc, exc_info=True)
        return 1
    finally:
        await engine.dispose()

    print(json.dumps(summary.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run the daily notification tasks once")
    parser.add_argument("--now", help="ISO-8601 instant to use as the current time")
    args = parser.parse_args()

    now = None
    if args.now:
        try:
            now = datetime.fromisoformat(args.now)
        except ValueError:
            print(f"Error: '{args.now}' is not an ISO-8601 datetime", file=sys.stderr)
            sys.exit(2)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

    sys.exit(asyncio.run(main(now)))
