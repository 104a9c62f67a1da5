"""
Hotel P&L - Inventory Valuation

Stock on hand at cost per department, and the items that have fallen
below their minimum level. Missing stock figures count as zero.
"""

from typing import Iterable, Optional

from app.core.types import ZERO, Money
from app.models.hotel import DEPARTMENT_DISPLAY_NAMES, InventoryItem
from app.models.pl import InventoryValuation, LowStockItem
from app.services.unit_conversion import normalize_unit


def is_low_stock(item: InventoryItem) -> bool:
    return item.current_stock < item.min_stock_level


def calculate_inventory_valuation(
    department: str,
    inventory: list[InventoryItem],
    display_name: Optional[str] = None,
) -> InventoryValuation:
    """Sum of current_stock * cost_price, with item and low-stock counts."""
    total_value = sum((i.current_stock * i.cost_price for i in inventory), ZERO)

    return InventoryValuation(
        department=department,
        display_name=display_name or DEPARTMENT_DISPLAY_NAMES.get(department, department),
        total_value=Money.round(total_value),
        item_count=len(inventory),
        low_stock_count=sum(1 for i in inventory if is_low_stock(i)),
    )


def collect_low_stock_items(inventory: Iterable[InventoryItem], department: str) -> list[LowStockItem]:
    """Items below their minimum level, tagged with the department's display name."""
    items = []
    for item in inventory:
        if not is_low_stock(item):
            continue
        shortfall = item.min_stock_level - item.current_stock
        items.append(LowStockItem(
            id=item.id,
            name=item.name,
            department=department,
            current_stock=item.current_stock,
            min_stock_level=item.min_stock_level,
            unit=normalize_unit(item.unit),
            percent_below_min=Money.round(Money.ratio(shortfall, item.min_stock_level)),
        ))
    return items


def rank_low_stock_items(items: Iterable[LowStockItem]) -> list[LowStockItem]:
    """Most depleted first."""
    return sorted(items, key=lambda i: i.percent_below_min, reverse=True)
