"""Application fee generation (South African Rand)."""

import random

from app.config import settings


def random_currency(minimum: float, maximum: float, decimals: int = 2) -> float:
    """Uniform amount in [minimum, maximum], rounded to `decimals` places."""
    if maximum < minimum:
        raise ValueError("maximum must be >= minimum")
    return round(random.uniform(minimum, maximum), decimals)


def generate_application_fee() -> float:
    """Draw the per-application fee once, when a fresh draft is created."""
    return random_currency(settings.application_fee_min, settings.application_fee_max)
