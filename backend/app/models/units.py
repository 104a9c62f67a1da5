"""
Hotel P&L - Canonical Unit Table

Recipes state quantities in whatever unit the cook thinks in (250 g, 30 ml,
2 pcs). Inventory is stocked and priced in its own unit (kg, l, bottle).
This table is what lets the costing engine translate one into the other.

FAMILIES:
A. Weight   - base: grams
B. Volume   - base: millilitres
C. Count    - base: pieces
D. Packaging - bottle, can, box... each only converts to itself
"""

from decimal import Decimal
from enum import Enum


class UnitCategory(str, Enum):
    """Unit families for conversion logic."""
    WEIGHT = "weight"
    VOLUME = "volume"
    COUNT = "count"
    PACKAGING = "packaging"


class CanonicalUnit(str, Enum):
    """Canonical unit values stored on inventory and recipe rows."""
    # Weight
    KILOGRAMS = "kg"
    GRAMS = "g"

    # Volume
    LITERS = "l"
    MILLILITERS = "ml"

    # Count
    PIECES = "pcs"
    DOZEN = "dozen"

    # Packaging
    BOTTLE = "bottle"
    CAN = "can"
    BOX = "box"
    PACK = "pack"
    BAG = "bag"
    ROLL = "roll"
    SET = "set"


# Unit used when a row carries no unit at all
DEFAULT_UNIT = CanonicalUnit.PIECES


# Unit metadata for conversions
UNIT_METADATA: dict[CanonicalUnit, dict] = {
    # Weight (base: grams)
    CanonicalUnit.KILOGRAMS: {"category": UnitCategory.WEIGHT, "to_base": Decimal("1000")},
    CanonicalUnit.GRAMS: {"category": UnitCategory.WEIGHT, "to_base": Decimal("1")},

    # Volume (base: millilitres)
    CanonicalUnit.LITERS: {"category": UnitCategory.VOLUME, "to_base": Decimal("1000")},
    CanonicalUnit.MILLILITERS: {"category": UnitCategory.VOLUME, "to_base": Decimal("1")},

    # Count (base: pieces)
    CanonicalUnit.PIECES: {"category": UnitCategory.COUNT, "to_base": Decimal("1")},
    CanonicalUnit.DOZEN: {"category": UnitCategory.COUNT, "to_base": Decimal("12")},

    # Packaging (no cross-unit conversion)
    CanonicalUnit.BOTTLE: {"category": UnitCategory.PACKAGING, "to_base": Decimal("1")},
    CanonicalUnit.CAN: {"category": UnitCategory.PACKAGING, "to_base": Decimal("1")},
    CanonicalUnit.BOX: {"category": UnitCategory.PACKAGING, "to_base": Decimal("1")},
    CanonicalUnit.PACK: {"category": UnitCategory.PACKAGING, "to_base": Decimal("1")},
    CanonicalUnit.BAG: {"category": UnitCategory.PACKAGING, "to_base": Decimal("1")},
    CanonicalUnit.ROLL: {"category": UnitCategory.PACKAGING, "to_base": Decimal("1")},
    CanonicalUnit.SET: {"category": UnitCategory.PACKAGING, "to_base": Decimal("1")},
}


# Alternative spellings that should map to each canonical unit
UNIT_ALIASES: dict[CanonicalUnit, list[str]] = {
    CanonicalUnit.KILOGRAMS: ["kg", "kgs", "kilogram", "kilograms", "kilo", "kilos"],
    CanonicalUnit.GRAMS: ["g", "gm", "gms", "gram", "grams"],
    CanonicalUnit.LITERS: ["l", "ltr", "ltrs", "liter", "liters", "litre", "litres"],
    CanonicalUnit.MILLILITERS: ["ml", "mls", "milliliter", "milliliters", "millilitre", "millilitres"],
    CanonicalUnit.PIECES: ["pcs", "pc", "piece", "pieces", "unit", "units", "nos", "no"],
    CanonicalUnit.DOZEN: ["dozen", "dz", "dzn"],
    CanonicalUnit.BOTTLE: ["bottle", "bottles", "btl", "btls"],
    CanonicalUnit.CAN: ["can", "cans"],
    CanonicalUnit.BOX: ["box", "boxes", "bx"],
    CanonicalUnit.PACK: ["pack", "packs", "pkt", "packet", "packets"],
    CanonicalUnit.BAG: ["bag", "bags"],
    CanonicalUnit.ROLL: ["roll", "rolls"],
    CanonicalUnit.SET: ["set", "sets"],
}


# Flattened lookup for fast normalization
UNIT_ALIAS_MAP: dict[str, CanonicalUnit] = {
    alias: unit
    for unit, aliases in UNIT_ALIASES.items()
    for alias in aliases
}
