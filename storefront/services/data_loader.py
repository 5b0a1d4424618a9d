"""Data loader service for importing catalog data."""

import json
import logging
from pathlib import Path
from typing import Any

from pymongo import UpdateOne

from storefront.database.mongodb import PRODUCTS, mongodb
from storefront.models.product import Product

logger = logging.getLogger(__name__)


class DataLoader:
    """Service for loading product exports into the catalog collection."""

    @staticmethod
    def load_json_file(file_path: str | Path) -> list[dict[str, Any]]:
        """Load data from a single JSON file.

        Supports both:
        - Export format: { "products": [...] }
        - Flat array [...]
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if file_path.suffix.lower() != ".json":
            raise ValueError(f"File must be a JSON file: {file_path}")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in file %s: %s", file_path, e)
            raise

        if isinstance(data, dict) and "products" in data:
            data = data["products"]
        elif isinstance(data, dict):
            data = [data]
        elif not isinstance(data, list):
            raise ValueError("JSON must contain a 'products' array, an object, or an array")

        logger.info("Loaded %d records from %s", len(data), file_path)
        return data

    @staticmethod
    def transform_record(raw: dict[str, Any]) -> dict[str, Any]:
        """Map a products-table export row (snake_case) onto the Product fields.

        Rows that already use the camelCase field names pass through unchanged.
        """
        mrp = raw.get("mrp")
        return {
            "productId": str(raw.get("productId") or raw.get("id") or ""),
            "name": raw.get("name", ""),
            "price": float(raw.get("price", 0.0)),
            "mrp": float(mrp) if mrp is not None else None,
            "category": raw.get("category", ""),
            "description": raw.get("description") or "",
            "imageUrl": raw.get("imageUrl") or raw.get("image_url") or "",
        }

    @staticmethod
    def validate_and_parse_products(data: list[dict[str, Any]]) -> list[Product]:
        """Validate raw rows into Product models, skipping invalid ones."""
        products: list[Product] = []
        errors = 0

        for idx, item in enumerate(data):
            try:
                transformed = DataLoader.transform_record(item)
                if not transformed["productId"]:
                    raise ValueError("missing product id")
                products.append(Product(**transformed))
            except (ValueError, TypeError) as e:
                errors += 1
                logger.warning("Invalid product data at index %d: %s", idx, e)

        if errors:
            logger.warning("Failed to parse %d out of %d records", errors, len(data))

        logger.info("Successfully validated %d products", len(products))
        return products

    @staticmethod
    def load_directory(directory_path: str | Path) -> list[dict[str, Any]]:
        """Load all JSON files from a directory."""
        directory_path = Path(directory_path)

        if not directory_path.is_dir():
            raise FileNotFoundError(f"Directory not found: {directory_path}")

        all_data: list[dict[str, Any]] = []
        json_files = sorted(directory_path.glob("*.json"))

        if not json_files:
            logger.warning("No JSON files found in %s", directory_path)
            return all_data

        for json_file in json_files:
            try:
                all_data.extend(DataLoader.load_json_file(json_file))
            except (ValueError, OSError) as e:
                logger.error("Skipping file %s: %s", json_file, e)

        logger.info("Loaded %d total records from %d files", len(all_data), len(json_files))
        return all_data

    @staticmethod
    async def save_products(products: list[Product]) -> int:
        """Upsert products by productId. Returns the number of new products."""
        if not products:
            return 0

        operations = [
            UpdateOne(
                {"productId": product.productId},
                {"$set": product.model_dump()},
                upsert=True,
            )
            for product in products
        ]
        result = await mongodb.collection(PRODUCTS).bulk_write(operations, ordered=False)
        logger.info(
            "Catalog upsert: %d inserted, %d updated",
            result.upserted_count,
            result.modified_count,
        )
        return result.upserted_count
