"""
Hotel P&L - Canonical Money & Quantity Types
=============================================

RULE: All arithmetic happens on Decimal.

Amount:   Decimal (currency units, e.g. rupees)
          - Backend rows arrive as JSON numbers, so floats are accepted
            but converted through str() to avoid binary artefacts
          - Serialized as string in JSON

Quantity: Decimal (for partial units like 0.25 kg)

This module is the SINGLE SOURCE OF TRUTH for numeric types.
All schemas and models MUST import from here.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer, WithJsonSchema


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _to_decimal(v: Any, kind: str) -> Decimal:
    """
    Coerce a raw row value to Decimal.

    Accepts:
        - None: treated as zero (backend columns are nullable)
        - Decimal: pass through
        - int / str: parsed
        - float: parsed through its repr
    """
    if v is None:
        return ZERO

    if isinstance(v, bool):
        raise ValueError(f"Invalid {kind}: {v}")

    if isinstance(v, Decimal):
        return v

    if isinstance(v, (int, float, str)):
        try:
            dec = Decimal(str(v).strip() or "0")
        except InvalidOperation:
            raise ValueError(f"Invalid {kind}: {v}")
        if not dec.is_finite():
            raise ValueError(f"{kind.capitalize()} must be finite, got: {v}")
        return dec

    raise ValueError(f"Invalid {kind} type: {type(v)}")


def _validate_amount(v: Any) -> Decimal:
    return _to_decimal(v, "amount")


def _validate_quantity(v: Any) -> Decimal:
    return _to_decimal(v, "quantity")


def _serialize_decimal(v: Decimal) -> str:
    """Serialize as string (prevents JSON float issues)."""
    return str(v)


# =============================================================================
# AMOUNT (Decimal currency units)
# =============================================================================

Amount = Annotated[
    Decimal,
    BeforeValidator(_validate_amount),
    PlainSerializer(_serialize_decimal),
    WithJsonSchema({"type": "string", "description": "Monetary amount as decimal string"}),
]


# =============================================================================
# QUANTITY (Decimal)
# =============================================================================

Quantity = Annotated[
    Decimal,
    BeforeValidator(_validate_quantity),
    PlainSerializer(_serialize_decimal),
    WithJsonSchema({"type": "string", "description": "Decimal quantity as string"}),
]


# =============================================================================
# PERCENTAGE (Decimal, unbounded: deltas may exceed 100 or go negative)
# =============================================================================

Percentage = Annotated[
    Decimal,
    BeforeValidator(_validate_quantity),
    PlainSerializer(_serialize_decimal),
    WithJsonSchema({"type": "string", "description": "Percentage as decimal string"}),
]


class Money:
    """
    Money utilities for working with Decimal amounts.

    Usage:
        Money.round(Decimal("12.345"))           # -> Decimal("12.35")
        Money.format(Decimal("1234.5"), "₹")     # -> "₹1,234.50"
        Money.ratio(Decimal("25"), Decimal("200"))  # -> Decimal("12.5")
    """

    @staticmethod
    def to_decimal(value: Any) -> Decimal:
        """Convert a raw value (int/str/float/Decimal/None) to Decimal."""
        return _to_decimal(value, "amount")

    @staticmethod
    def round(amount: Decimal, places: int = 2) -> Decimal:
        """Round half-up to a fixed number of places."""
        return amount.quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP)

    @staticmethod
    def format(amount: Decimal, symbol: str = "", places: int = 2) -> str:
        """Render with a caller-supplied symbol, thousands separators and fixed places."""
        rounded = Money.round(amount, places)
        sign = "-" if rounded < 0 else ""
        return f"{sign}{symbol}{abs(rounded):,.{places}f}"

    @staticmethod
    def ratio(part: Decimal, whole: Decimal) -> Decimal:
        """Percentage of part in whole. Zero when whole is zero."""
        if whole == 0:
            return ZERO
        return part / whole * HUNDRED


__all__ = [
    "Amount",
    "Quantity",
    "Percentage",
    "Money",
    "ZERO",
    "HUNDRED",
]
