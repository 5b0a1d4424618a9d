"""Utilities package."""

from storefront.utils.helpers import (
    from_minor_units,
    generate_receipt,
    generate_uuid,
    round_money,
    to_minor_units,
    utc_now,
)
from storefront.utils.logger import setup_logging

__all__ = [
    "setup_logging",
    "generate_uuid",
    "generate_receipt",
    "utc_now",
    "round_money",
    "to_minor_units",
    "from_minor_units",
]
