"""
Hotel P&L - Unit Conversion

Translate a recipe-stated quantity into the inventory item's stocked unit,
and price it. This is the single source of truth for ingredient costing:
the COGS aggregator, the menu profitability view and the order-item level
sync check all go through here.

GUARDRAILS:
- Never raise for a bad unit. A broken recipe line must not take down a report.
- Unknown units are treated as count ("pcs") and reported, not rejected.
"""

import logging
from decimal import Decimal
from typing import Optional

from app.core.types import ZERO, Money
from app.models.units import (
    DEFAULT_UNIT,
    UNIT_ALIAS_MAP,
    UNIT_METADATA,
    CanonicalUnit,
    UnitCategory,
)

logger = logging.getLogger(__name__)


def normalize_unit(unit: Optional[str]) -> str:
    """
    Normalize a unit string to its canonical form.

    "Kilogram" -> "kg", " ltrs " -> "l", "pieces" -> "pcs", None -> "pcs".
    Unrecognised text is returned lower-cased and trimmed.
    """
    if not unit or not unit.strip():
        return DEFAULT_UNIT.value
    cleaned = unit.strip().lower()
    canonical = UNIT_ALIAS_MAP.get(cleaned)
    return canonical.value if canonical else cleaned


def is_known_unit(unit: Optional[str]) -> bool:
    """True if the unit matches a canonical unit or one of its aliases."""
    if not unit or not unit.strip():
        return False
    return unit.strip().lower() in UNIT_ALIAS_MAP


def _resolve(unit: Optional[str]) -> tuple[str, UnitCategory, Decimal]:
    """Canonical value, family and base factor. Unknown units resolve as count."""
    normalized = normalize_unit(unit)
    try:
        meta = UNIT_METADATA[CanonicalUnit(normalized)]
    except ValueError:
        return normalized, UnitCategory.COUNT, Decimal("1")
    return normalized, meta["category"], meta["to_base"]


def convert_units(
    quantity: Decimal,
    from_unit: Optional[str],
    to_unit: Optional[str],
) -> Optional[Decimal]:
    """
    Convert a quantity between units of the same family.

    Returns None when the families differ (ml -> kg) or when two different
    packaging units are involved (bottle -> can).
    """
    quantity = Money.to_decimal(quantity)
    from_value, from_category, from_factor = _resolve(from_unit)
    to_value, to_category, to_factor = _resolve(to_unit)

    if from_value == to_value:
        return quantity

    if from_category != to_category:
        return None

    if from_category == UnitCategory.PACKAGING:
        return None

    return quantity * from_factor / to_factor


def convert_ingredient_to_inventory_unit(
    quantity: Decimal,
    recipe_unit: Optional[str],
    inventory_unit: Optional[str],
) -> Optional[Decimal]:
    """Recipe quantity expressed in the inventory's stocked unit, or None."""
    return convert_units(quantity, recipe_unit, inventory_unit)


def calculate_ingredient_cost(
    recipe_qty: Decimal,
    recipe_unit: Optional[str],
    inventory_cost_per_unit: Decimal,
    inventory_unit: Optional[str],
) -> Decimal:
    """
    Cost of a recipe line priced at the inventory's cost-per-stocked-unit.

    Example: 250 g of an item costing 200/kg -> 0.25 * 200 = 50.
    Returns 0 when the units cannot be converted.
    """
    converted = convert_ingredient_to_inventory_unit(recipe_qty, recipe_unit, inventory_unit)
    if converted is None:
        logger.debug(
            "Cannot convert %s to %s; line costed at 0",
            normalize_unit(recipe_unit),
            normalize_unit(inventory_unit),
        )
        return ZERO
    return converted * Money.to_decimal(inventory_cost_per_unit)
