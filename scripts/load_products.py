"""Product data loading script.

Loads product JSON exports from data/products/ into the catalog collection.
Rows are upserted by productId, so the script can be re-run after the export
changes. Prices of existing orders are unaffected: order items keep their own
price snapshot.

Usage:
    python -m scripts.load_products
    python -m scripts.load_products --dir path/to/exports
"""

import argparse
import asyncio
import logging
from pathlib import Path

from storefront.database.mongodb import mongodb
from storefront.services.data_loader import DataLoader
from storefront.utils.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data" / "products"


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load product data into the catalog")
    parser.add_argument(
        "--dir",
        type=Path,
        default=DEFAULT_DATA_DIR,
        help="Directory containing product JSON files",
    )
    return parser.parse_args()


async def load_products(data_dir: Path) -> None:
    """Load products from JSON files into MongoDB."""
    try:
        logger.info("Starting product data loading from %s", data_dir)

        await mongodb.connect()

        raw_data = DataLoader.load_directory(data_dir)
        products = DataLoader.validate_and_parse_products(raw_data)
        if not products:
            logger.warning("No products found to load")
            return

        inserted = await DataLoader.save_products(products)
        logger.info(
            "Product loading completed: %d products processed, %d new",
            len(products),
            inserted,
        )

    except Exception as e:
        logger.error("Error loading products: %s", e)
        raise
    finally:
        await mongodb.disconnect()


if __name__ == "__main__":
    args = _parse_args()
    asyncio.run(load_products(args.dir))
