"""
Reminder dispatch worker.

Runs the service reminder, notification flush and overdue invoice sweep
on a fixed interval, or once with --once.
"""

import argparse
import asyncio
import json
import logging
from typing import List, Optional

from motorai.services.database import close_db, init_db
from motorai.services.notification_service import TwilioSmtpTransport
from motorai.services.redis_client import close_redis, init_redis

from worker.config import settings
from worker.scheduler import ReminderDispatchScheduler

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="MotorAI reminder dispatch worker")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sweep and exit instead of scheduling",
    )
    return parser.parse_args(argv)


async def main(once: bool = False) -> int:
    """Initialize resources and run the reminder scheduler."""
    logger.info("Starting reminder dispatch worker...")

    session_maker = await init_db(settings.DATABASE_URL)

    try:
        await init_redis(settings.REDIS_URL)
    except Exception as e:
        logger.warning(f"Redis unavailable, VIN decode caching disabled: {e}")

    scheduler = ReminderDispatchScheduler.from_settings(
        session_maker, TwilioSmtpTransport(), settings
    )

    try:
        if once:
            result = await scheduler.trigger()
            logger.info(f"Sweep result: {json.dumps(result.to_dict())}")
            return 0 if result.ok else 1

        scheduler.start()

        # Keep the worker running
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
        logger.info("Shutting down worker...")
    finally:
        await scheduler.stop()
        await close_redis()
        await close_db()

    return 0


def run() -> None:
    args = parse_args()
    try:
        exit_code = asyncio.run(main(once=args.once))
    except KeyboardInterrupt:
        logger.info("Worker interrupted")
        exit_code = 0
    raise SystemExit(exit_code)


if __name__ == "__main__":
    run()
