"""Remove order headers whose items were never committed.

Such headers are invisible to customers already; this reclaims them.

Usage:
    python -m scripts.purge_incomplete_orders
    python -m scripts.purge_incomplete_orders --older-than 30
"""

import argparse
import asyncio
import logging
from datetime import timedelta

from storefront.database.mongodb import mongodb
from storefront.database.order_repository import order_repository
from storefront.utils.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Purge incomplete order headers")
    parser.add_argument(
        "--older-than",
        type=int,
        default=15,
        help="Only purge headers older than this many minutes",
    )
    return parser.parse_args()


async def purge(older_than_minutes: int) -> int:
    """Purge incomplete orders and return how many were removed."""
    try:
        await mongodb.connect()
        removed = await order_repository.purge_incomplete_orders(
            timedelta(minutes=older_than_minutes)
        )
        logger.info("Removed %d incomplete order(s)", removed)
        return removed
    finally:
        await mongodb.disconnect()


def main() -> None:
    """Entry point for the script."""
    args = _parse_args()
    asyncio.run(purge(args.older_than))


if __name__ == "__main__":
    main()
