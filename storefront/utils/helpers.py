"""Utility helper functions."""

import math
import time
import uuid
from datetime import UTC, datetime


def generate_uuid() -> str:
    """Generate a unique UUID."""
    return str(uuid.uuid4())


def generate_receipt() -> str:
    """Generate a gateway receipt reference."""
    return f"receipt_{int(time.time() * 1000)}"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def round_money(amount: float) -> float:
    """Round a currency amount to two decimal places."""
    return round(amount, 2)


def to_minor_units(amount: float) -> int:
    """Convert a major-unit amount (rupees) to minor units (paise)."""
    if not math.isfinite(amount):
        raise ValueError(f"Amount is not finite: {amount}")
    return int(round(amount * 100))


def from_minor_units(amount: int) -> float:
    """Convert minor units back to a major-unit amount."""
    return round_money(amount / 100)
