"""
Regional price adjustment.

Destinations are matched case-insensitively; anything not listed keeps its
declared value.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

CENT = Decimal("0.01")

REGIONAL_MULTIPLIERS: Dict[str, Decimal] = {
    "NORDESTE": Decimal("1.20"),
    "ARGENTINA": Decimal("1.40"),
    "AMAZONIA": Decimal("1.30"),
}


def normalize_destination(destination: str) -> str:
    return destination.strip().upper()


def regional_multiplier(destination: str) -> Decimal:
    return REGIONAL_MULTIPLIERS.get(normalize_destination(destination), Decimal("1"))


def apply_regional_adjustment(value: Decimal, destination: str) -> Decimal:
    """Declared value times the destination multiplier, kept at cent precision"""
    adjusted = Decimal(value) * regional_multiplier(destination)
    return adjusted.quantize(CENT, rounding=ROUND_HALF_UP)
