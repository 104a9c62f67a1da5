"""
Hotel P&L - Recipe-Based COGS Engine
Turn sold order lines into ingredient cost.

LOGIC:
1. Restrict order lines to the filtered order set
2. Cost recipe-based lines ingredient by ingredient (unit-converted)
3. Estimate recipe-less lines at a flat share of line revenue
4. Roll up into category and per-ingredient breakdowns

GUARDRAILS:
- Pure: no I/O, no mutation of inputs, fresh accumulators per call
- Missing menu item / inventory row / bad unit / non-positive quantity
  costs 0 for that line only
- No orders in the period means no COGS, whatever else is in the inputs
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from app.core.config import settings
from app.core.types import ZERO, Money
from app.models.hotel import InventoryItem, MenuItem, OrderItem
from app.models.pl import (
    ESTIMATED_CATEGORY,
    CategoryCostBreakdown,
    COGSResult,
    DataQualityReport,
    IngredientDetail,
    InvalidQuantityLine,
    LineTotalMismatch,
    MenuItemProfitability,
    UnconvertibleLine,
)
from app.services.unit_conversion import (
    calculate_ingredient_cost,
    convert_ingredient_to_inventory_unit,
    is_known_unit,
    normalize_unit,
)

logger = logging.getLogger(__name__)

UNKNOWN_ITEM_NAME = "Unknown Item"
DEFAULT_CATEGORY = "Other"


@dataclass
class IngredientLineCost:
    """Cost of one recipe line for one order line (sold quantity applied)."""
    inventory_id: str
    inventory_item: Optional[InventoryItem]
    recipe_unit: str
    inventory_unit: str
    quantity: Decimal  # in the inventory's unit; as stated in the recipe when not valid
    cost: Decimal
    convertible: bool = True
    valid_quantity: bool = True

    @property
    def found(self) -> bool:
        return self.inventory_item is not None


@dataclass
class _DetailTotals:
    id: str
    name: str
    unit: str
    cost_price: Decimal
    total_quantity: Decimal = ZERO
    total_cost: Decimal = ZERO
    used_in: list[str] = field(default_factory=list)
    is_estimated: bool = False

    def add(self, quantity: Decimal, cost: Decimal, used_in: str) -> None:
        self.total_quantity += quantity
        self.total_cost += cost
        if used_in not in self.used_in:
            self.used_in.append(used_in)


def _resolve_rate(estimate_rate) -> Decimal:
    if estimate_rate is None:
        return settings.COGS_ESTIMATE_RATE
    return Money.to_decimal(estimate_rate)


def _category_name(raw: Optional[str]) -> str:
    return (raw or DEFAULT_CATEGORY).replace("_", " ")


def _item_name(order_item: OrderItem, menu_item: Optional[MenuItem]) -> str:
    if menu_item is not None:
        return menu_item.name
    return order_item.item_name or UNKNOWN_ITEM_NAME


# =============================================================================
# PER ORDER LINE (ingredient cost calculator)
# =============================================================================

def calculate_order_item_cost(
    order_item: OrderItem,
    menu_item: MenuItem,
    inventory_map: dict[str, InventoryItem],
) -> list[IngredientLineCost]:
    """
    Cost every recipe line of a menu item for one order line.

    Recipe quantities are per single serving; the sold quantity multiplies
    them. Lines whose inventory row is missing or whose unit cannot be
    converted, or whose quantity is not positive, are returned with zero
    cost rather than dropped.
    """
    lines: list[IngredientLineCost] = []

    for ingredient in menu_item.ingredients or []:
        recipe_unit = normalize_unit(ingredient.unit)
        inventory_item = inventory_map.get(ingredient.inventory_id)

        if ingredient.quantity <= 0:
            lines.append(IngredientLineCost(
                inventory_id=ingredient.inventory_id,
                inventory_item=inventory_item,
                recipe_unit=recipe_unit,
                inventory_unit=normalize_unit(inventory_item.unit) if inventory_item else "",
                quantity=ingredient.quantity,
                cost=ZERO,
                valid_quantity=False,
            ))
            continue

        if inventory_item is None:
            lines.append(IngredientLineCost(
                inventory_id=ingredient.inventory_id,
                inventory_item=None,
                recipe_unit=recipe_unit,
                inventory_unit="",
                quantity=ZERO,
                cost=ZERO,
            ))
            continue

        inventory_unit = normalize_unit(inventory_item.unit)
        converted = convert_ingredient_to_inventory_unit(
            ingredient.quantity, ingredient.unit, inventory_item.unit
        )
        if converted is None:
            lines.append(IngredientLineCost(
                inventory_id=ingredient.inventory_id,
                inventory_item=inventory_item,
                recipe_unit=recipe_unit,
                inventory_unit=inventory_unit,
                quantity=ZERO,
                cost=ZERO,
                convertible=False,
            ))
            continue

        unit_cost = calculate_ingredient_cost(
            ingredient.quantity,
            ingredient.unit,
            inventory_item.cost_price,
            inventory_item.unit,
        )
        lines.append(IngredientLineCost(
            inventory_id=ingredient.inventory_id,
            inventory_item=inventory_item,
            recipe_unit=recipe_unit,
            inventory_unit=inventory_unit,
            quantity=converted * order_item.quantity,
            cost=unit_cost * order_item.quantity,
        ))

    return lines


def calculate_recipe_cost(
    menu_item: MenuItem,
    inventory_map: dict[str, InventoryItem],
) -> Decimal:
    """Ingredient cost of a single serving. Missing rows and non-positive lines cost 0."""
    total = ZERO
    for ingredient in menu_item.ingredients or []:
        inventory_item = inventory_map.get(ingredient.inventory_id)
        if inventory_item is None or ingredient.quantity <= 0:
            continue
        total += calculate_ingredient_cost(
            ingredient.quantity,
            ingredient.unit,
            inventory_item.cost_price,
            inventory_item.unit,
        )
    return total


# =============================================================================
# LINE TOTAL RECONCILIATION
# =============================================================================

def find_line_total_mismatches(
    order_items: Iterable[OrderItem],
    tolerance: Optional[Decimal] = None,
) -> list[LineTotalMismatch]:
    """
    Flag order lines whose stored total_price disagrees with
    quantity * unit_price by more than the tolerance.
    """
    tolerance = settings.LINE_TOTAL_TOLERANCE if tolerance is None else Money.to_decimal(tolerance)
    mismatches = []

    for item in order_items:
        expected = item.unit_price * item.quantity
        difference = item.total_price - expected
        if abs(difference) > tolerance:
            mismatches.append(LineTotalMismatch(
                order_item_id=item.id,
                item_name=item.item_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                expected_total=expected,
                total_price=item.total_price,
                difference=difference,
            ))

    return mismatches


# =============================================================================
# AGGREGATION
# =============================================================================

def compute_cogs(
    filtered_order_ids: Iterable[str],
    order_items: list[OrderItem],
    menu_items: list[MenuItem],
    inventory: list[InventoryItem],
    estimate_rate: Optional[Decimal] = None,
    line_total_tolerance: Optional[Decimal] = None,
) -> COGSResult:
    """
    Recipe-based COGS for the order lines of a filtered order set.

    Returns total COGS, category breakdown (descending by cost, with
    percentages of the total), recipe-based vs estimated line counts and
    the data-quality problems absorbed along the way.
    """
    order_ids = set(filtered_order_ids)

    # No orders, no COGS
    if not order_ids:
        return COGSResult(total_cogs=ZERO)

    rate = _resolve_rate(estimate_rate)
    menu_item_map = {m.id: m for m in menu_items}
    inventory_map = {i.id: i for i in inventory}
    relevant = [oi for oi in order_items if oi.order_id in order_ids]

    total_cogs = ZERO
    recipe_based = 0
    estimated = 0
    category_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    category_details: dict[str, dict[str, _DetailTotals]] = defaultdict(dict)

    missing_menu_items: list[str] = []
    missing_inventory: list[str] = []
    unconvertible: list[UnconvertibleLine] = []
    unrecognized: set[str] = set()
    invalid_quantities: list[InvalidQuantityLine] = []

    for order_item in relevant:
        if order_item.quantity <= 0:
            invalid_quantities.append(InvalidQuantityLine(
                order_item_id=order_item.id,
                item_name=order_item.item_name,
                quantity=order_item.quantity,
            ))
            continue

        menu_item = menu_item_map.get(order_item.menu_item_id) if order_item.menu_item_id else None
        if order_item.menu_item_id and menu_item is None:
            missing_menu_items.append(order_item.id)

        if menu_item is not None and menu_item.has_recipe:
            recipe_based += 1
            for ingredient in menu_item.ingredients:
                if ingredient.unit and not is_known_unit(ingredient.unit):
                    unrecognized.add(ingredient.unit.strip())

            for line in calculate_order_item_cost(order_item, menu_item, inventory_map):
                if not line.valid_quantity:
                    invalid_quantities.append(InvalidQuantityLine(
                        order_item_id=order_item.id,
                        item_name=menu_item.name,
                        inventory_id=line.inventory_id,
                        quantity=line.quantity,
                    ))
                    continue
                if not line.found:
                    if line.inventory_id not in missing_inventory:
                        missing_inventory.append(line.inventory_id)
                    continue

                inventory_item = line.inventory_item
                if inventory_item.unit and not is_known_unit(inventory_item.unit):
                    unrecognized.add(inventory_item.unit.strip())
                if not line.convertible:
                    unconvertible.append(UnconvertibleLine(
                        menu_item=menu_item.name,
                        inventory_item=inventory_item.name,
                        recipe_unit=line.recipe_unit,
                        inventory_unit=line.inventory_unit,
                    ))

                total_cogs += line.cost
                category = _category_name(inventory_item.category)
                category_totals[category] += line.cost

                details = category_details[category]
                if inventory_item.id not in details:
                    details[inventory_item.id] = _DetailTotals(
                        id=inventory_item.id,
                        name=inventory_item.name,
                        unit=line.inventory_unit,
                        cost_price=inventory_item.cost_price,
                    )
                details[inventory_item.id].add(line.quantity, line.cost, menu_item.name)
        else:
            estimated += 1
            estimated_cost = order_item.total_price * rate
            total_cogs += estimated_cost
            category_totals[ESTIMATED_CATEGORY] += estimated_cost

            name = _item_name(order_item, menu_item)
            details = category_details[ESTIMATED_CATEGORY]
            if name not in details:
                details[name] = _DetailTotals(
                    id=menu_item.id if menu_item is not None else "unknown",
                    name=name,
                    unit="items",
                    cost_price=ZERO,
                    is_estimated=True,
                )
            details[name].add(Decimal(order_item.quantity), estimated_cost, "No recipe defined")

    breakdown = [
        CategoryCostBreakdown(
            category=category,
            total_cost=Money.round(cost),
            percentage=Money.round(Money.ratio(cost, total_cogs)),
            ingredients=[
                IngredientDetail(
                    id=d.id,
                    name=d.name,
                    unit=d.unit,
                    cost_price=d.cost_price,
                    total_quantity=d.total_quantity,
                    total_cost=Money.round(d.total_cost),
                    used_in=list(d.used_in),
                    is_estimated=d.is_estimated,
                )
                for d in sorted(
                    category_details[category].values(),
                    key=lambda d: d.total_cost,
                    reverse=True,
                )
            ],
        )
        for category, cost in sorted(
            category_totals.items(), key=lambda kv: kv[1], reverse=True
        )
    ]

    quality = DataQualityReport(
        missing_menu_items=missing_menu_items,
        missing_inventory_items=missing_inventory,
        unconvertible_lines=unconvertible,
        unrecognized_units=sorted(unrecognized),
        line_total_mismatches=find_line_total_mismatches(relevant, line_total_tolerance),
        invalid_quantities=invalid_quantities,
    )
    if quality.issue_count:
        logger.warning(
            "COGS computed with %d data-quality issue(s): %d missing menu item(s), "
            "%d missing inventory row(s), %d unconvertible line(s), %d unrecognised unit(s), "
            "%d line total mismatch(es), %d invalid quantit(ies)",
            quality.issue_count,
            len(quality.missing_menu_items),
            len(quality.missing_inventory_items),
            len(quality.unconvertible_lines),
            len(quality.unrecognized_units),
            len(quality.line_total_mismatches),
            len(quality.invalid_quantities),
        )

    return COGSResult(
        total_cogs=Money.round(total_cogs),
        ingredient_breakdown=breakdown,
        recipe_based_item_count=recipe_based,
        estimated_item_count=estimated,
        average_cost_per_order=Money.round(total_cogs / len(order_ids)),
        data_quality=quality,
    )


# =============================================================================
# MENU ITEM PROFITABILITY
# =============================================================================

PROFITABILITY_SORT_KEYS = {
    "margin": lambda p: p.margin_percent,
    "revenue": lambda p: p.total_revenue,
    "quantity": lambda p: p.total_quantity,
}


def compute_menu_item_profitability(
    filtered_order_ids: Iterable[str],
    order_items: list[OrderItem],
    menu_items: list[MenuItem],
    inventory: list[InventoryItem],
    estimate_rate: Optional[Decimal] = None,
    sort_by: str = "margin",
) -> list[MenuItemProfitability]:
    """
    Per menu item: unit recipe cost, quantity sold, revenue, cost and margin.

    Recipe-less items are costed at estimate_rate of their list price.
    Items with no sales in the order set are left out.
    """
    if sort_by not in PROFITABILITY_SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by}")

    order_ids = set(filtered_order_ids)
    rate = _resolve_rate(estimate_rate)
    inventory_map = {i.id: i for i in inventory}

    sold_quantity: dict[str, int] = defaultdict(int)
    sold_revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for oi in order_items:
        if oi.order_id in order_ids and oi.menu_item_id and oi.quantity > 0:
            sold_quantity[oi.menu_item_id] += oi.quantity
            sold_revenue[oi.menu_item_id] += oi.total_price

    rows = []
    for menu_item in menu_items:
        quantity = sold_quantity.get(menu_item.id, 0)
        if quantity <= 0:
            continue

        if menu_item.has_recipe:
            recipe_cost = calculate_recipe_cost(menu_item, inventory_map)
        else:
            recipe_cost = menu_item.price * rate

        revenue = sold_revenue[menu_item.id]
        total_cost = recipe_cost * quantity
        profit = revenue - total_cost

        rows.append(MenuItemProfitability(
            id=menu_item.id,
            name=menu_item.name,
            category=menu_item.category or "Uncategorized",
            price=menu_item.price,
            recipe_cost=Money.round(recipe_cost),
            has_recipe=menu_item.has_recipe,
            total_quantity=quantity,
            total_revenue=Money.round(revenue),
            total_cost=Money.round(total_cost),
            profit=Money.round(profit),
            margin_percent=Money.round(Money.ratio(profit, revenue)),
            unit_margin=Money.round(menu_item.price - recipe_cost),
        ))

    rows.sort(key=PROFITABILITY_SORT_KEYS[sort_by], reverse=True)
    return rows
