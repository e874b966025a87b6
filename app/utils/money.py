"""Decimal helpers for two-digit currency amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT: Decimal = Decimal("0.01")
ZERO: Decimal = Decimal("0.00")


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize a value to two fractional digits."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
