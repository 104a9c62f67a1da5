"""
Hotel P&L - COGS Sync Verification

The hotel-wide P&L and each department's own P&L reach COGS by different
routes. This module reconciles the two figures per department and says
why they most likely drifted when they do.

GUARDRAILS:
- The order-item level figure here is computed independently: it shares
  only the unit table with the COGS aggregator, never its results.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from app.core.config import settings
from app.core.types import ZERO, HUNDRED, Money
from app.models.hotel import DEPARTMENT_DISPLAY_NAMES, InventoryItem, MenuItem, OrderItem
from app.models.pl import DepartmentCOGS, SyncReport, SyncResult
from app.services.unit_conversion import calculate_ingredient_cost

logger = logging.getLogger(__name__)


HOTEL_SIDE_LARGER = "Hotel P/L includes more orders or uses different date filtering"
DEPARTMENT_SIDE_LARGER = "Department P/L includes more orders or uses different date filtering"

POSSIBLE_CAUSES = [
    "Date range mismatch between the two reports",
    "Order status filter mismatch (e.g. cancelled or unpaid orders included on one side)",
    "Rounding differences in per-line costs",
    "Recipe or inventory cost edits made during the period",
]


def compute_order_item_cogs(
    department: str,
    order_ids: Iterable[str],
    order_items: list[OrderItem],
    menu_items: list[MenuItem],
    inventory: list[InventoryItem],
    estimate_rate: Optional[Decimal] = None,
    display_name: Optional[str] = None,
) -> DepartmentCOGS:
    """
    Order-item level COGS for one department.

    One pass over the order lines, summing recipe cost * quantity or the
    flat estimate for recipe-less lines. No breakdowns, no caching.
    """
    rate = settings.COGS_ESTIMATE_RATE if estimate_rate is None else Money.to_decimal(estimate_rate)
    ids = set(order_ids)
    menu_lookup = {m.id: m for m in menu_items}
    inventory_lookup = {i.id: i for i in inventory}

    total = ZERO
    if ids:
        for oi in order_items:
            if oi.order_id not in ids or oi.quantity <= 0:
                continue
            menu_item = menu_lookup.get(oi.menu_item_id) if oi.menu_item_id else None
            if menu_item is None or not menu_item.ingredients:
                total += oi.total_price * rate
                continue
            for ingredient in menu_item.ingredients:
                inv = inventory_lookup.get(ingredient.inventory_id)
                if inv is None or ingredient.quantity <= 0:
                    continue
                total += calculate_ingredient_cost(
                    ingredient.quantity, ingredient.unit, inv.cost_price, inv.unit
                ) * oi.quantity

    return DepartmentCOGS(
        department=department,
        display_name=display_name or DEPARTMENT_DISPLAY_NAMES.get(department, department),
        total_cogs=Money.round(total),
    )


def _classify(
    hotel_value: Decimal,
    department_value: Decimal,
    absolute_tolerance: Decimal,
    percent_tolerance: Decimal,
) -> tuple[Decimal, Decimal, bool]:
    difference = abs(hotel_value - department_value)
    average = (hotel_value + department_value) / 2
    percentage_diff = difference / average * HUNDRED if average > 0 else ZERO
    is_synced = difference < absolute_tolerance or percentage_diff < percent_tolerance
    return difference, percentage_diff, is_synced


def verify_cogs_sync(
    debug_cogs: list[DepartmentCOGS],
    department_cogs: list[DepartmentCOGS],
    absolute_tolerance: Optional[Decimal] = None,
    percent_tolerance: Optional[Decimal] = None,
) -> SyncReport:
    """
    Reconcile the hotel-side (order-item level) COGS per department with the
    figure each department report shows.

    A department is synced when the two figures are within the absolute
    tolerance OR within the percentage tolerance of their average. The
    overall status only checks the grand totals against the absolute
    tolerance.
    """
    absolute_tolerance = (
        settings.SYNC_ABSOLUTE_TOLERANCE if absolute_tolerance is None
        else Money.to_decimal(absolute_tolerance)
    )
    percent_tolerance = (
        settings.SYNC_PERCENT_TOLERANCE if percent_tolerance is None
        else Money.to_decimal(percent_tolerance)
    )
    department_lookup = {d.department: d for d in department_cogs}

    results = []
    for debug in debug_cogs:
        counterpart = department_lookup.get(debug.department)
        hotel_value = debug.total_cogs
        department_value = counterpart.total_cogs if counterpart else ZERO

        difference, percentage_diff, is_synced = _classify(
            hotel_value, department_value, absolute_tolerance, percent_tolerance
        )

        reason = None
        causes: list[str] = []
        if not is_synced:
            reason = HOTEL_SIDE_LARGER if hotel_value > department_value else DEPARTMENT_SIDE_LARGER
            causes = list(POSSIBLE_CAUSES)
            logger.warning(
                "COGS out of sync for %s: hotel=%s department=%s (diff %s, %s%%)",
                debug.department,
                hotel_value,
                department_value,
                difference,
                Money.round(percentage_diff),
            )

        results.append(SyncResult(
            department=debug.department,
            display_name=debug.display_name or debug.department,
            hotel_pl_cogs=hotel_value,
            department_pl_cogs=department_value,
            difference=difference,
            percentage_diff=percentage_diff,
            is_synced=is_synced,
            reason=reason,
            possible_causes=causes,
        ))

    total_hotel = sum((d.total_cogs for d in debug_cogs), ZERO)
    total_department = sum((d.total_cogs for d in department_cogs), ZERO)
    total_difference = abs(total_hotel - total_department)
    synced_count = sum(1 for r in results if r.is_synced)

    return SyncReport(
        results=results,
        total_hotel_pl_cogs=total_hotel,
        total_department_pl_cogs=total_department,
        total_difference=total_difference,
        overall_synced=total_difference < absolute_tolerance,
        synced_count=synced_count,
        discrepancy_count=len(results) - synced_count,
        sync_percentage=Money.ratio(Decimal(synced_count), Decimal(len(results))),
    )
