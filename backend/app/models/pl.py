"""
Hotel P&L - Report Schemas
Derived, never persisted: rebuilt from the order/menu/inventory snapshot
on every report request.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from app.core.types import Amount, Percentage, Quantity
from app.models.hotel import ComparativeMode, ComparisonType, Period


ESTIMATED_CATEGORY = "Estimated"


# =============================================================================
# DATA QUALITY
# =============================================================================

class UnconvertibleLine(BaseModel):
    """Recipe line whose unit cannot be expressed in the inventory unit."""
    menu_item: str
    inventory_item: str
    recipe_unit: str
    inventory_unit: str


class LineTotalMismatch(BaseModel):
    """Order line whose stored total disagrees with quantity * unit_price."""
    order_item_id: str
    item_name: Optional[str] = None
    quantity: int
    unit_price: Amount
    expected_total: Amount
    total_price: Amount
    difference: Amount


class InvalidQuantityLine(BaseModel):
    """
    Order line sold in a non-positive quantity, or recipe line with a
    non-positive quantity. Costed at 0.
    """
    order_item_id: str
    item_name: Optional[str] = None
    inventory_id: Optional[str] = None  # set for recipe lines
    quantity: Quantity


class DataQualityReport(BaseModel):
    """Problems absorbed while costing. Flagged, never corrected."""
    missing_menu_items: list[str] = []  # order item ids
    missing_inventory_items: list[str] = []  # inventory ids
    unconvertible_lines: list[UnconvertibleLine] = []
    unrecognized_units: list[str] = []
    line_total_mismatches: list[LineTotalMismatch] = []
    invalid_quantities: list[InvalidQuantityLine] = []

    @property
    def issue_count(self) -> int:
        return (
            len(self.missing_menu_items)
            + len(self.missing_inventory_items)
            + len(self.unconvertible_lines)
            + len(self.unrecognized_units)
            + len(self.line_total_mismatches)
            + len(self.invalid_quantities)
        )


# =============================================================================
# COGS
# =============================================================================

class IngredientDetail(BaseModel):
    """Running totals for one ingredient (or one estimated item)."""
    id: str
    name: str
    unit: str
    cost_price: Amount
    total_quantity: Quantity
    total_cost: Amount
    used_in: list[str] = []
    is_estimated: bool = False


class CategoryCostBreakdown(BaseModel):
    """COGS contribution of one inventory category."""
    category: str
    total_cost: Amount
    percentage: Percentage
    ingredients: list[IngredientDetail] = []


class COGSResult(BaseModel):
    """Recipe-based cost of goods sold for a filtered order set."""
    total_cogs: Amount
    ingredient_breakdown: list[CategoryCostBreakdown] = []
    recipe_based_item_count: int = 0
    estimated_item_count: int = 0
    average_cost_per_order: Amount = Field(default=Decimal("0"))
    data_quality: DataQualityReport = Field(default_factory=DataQualityReport)

    @property
    def has_estimated_costs(self) -> bool:
        return self.estimated_item_count > 0


class MenuItemProfitability(BaseModel):
    """Sales-weighted cost and margin of one menu item."""
    id: str
    name: str
    category: str
    price: Amount
    recipe_cost: Amount  # per unit sold
    has_recipe: bool
    total_quantity: int
    total_revenue: Amount
    total_cost: Amount
    profit: Amount
    margin_percent: Percentage
    unit_margin: Amount


# =============================================================================
# P&L
# =============================================================================

class PLMetrics(BaseModel):
    """
    Profit & loss figures for one period.

    net_profit = gross_profit - tax. Discount is already reflected in
    order totals; it is carried for display only.
    """
    revenue: Amount
    cogs: Amount
    gross_profit: Amount
    tax: Amount
    discount: Amount
    net_profit: Amount
    profit_margin: Percentage
    order_count: int


class MetricDelta(BaseModel):
    """Change in one metric. percentage is None when the baseline is zero."""
    value: Amount
    percentage: Optional[Percentage] = None


class PLComparison(BaseModel):
    """Current vs comparison period."""
    current: PLMetrics
    previous: PLMetrics
    changes: dict[str, MetricDelta]


class DepartmentPLReport(BaseModel):
    """Everything the department P&L screen renders."""
    department: str
    display_name: str
    period: Period
    metrics: PLMetrics
    cogs: COGSResult
    menu_items: list[MenuItemProfitability] = []
    has_estimated_costs: bool = False

    comparison_type: Optional[ComparisonType] = None
    comparison_period: Optional[Period] = None
    comparison: Optional[PLComparison] = None

    generated_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# SYNC VERIFICATION
# =============================================================================

class DepartmentCOGS(BaseModel):
    """One department's COGS figure as surfaced by one report path."""
    department: str
    display_name: Optional[str] = None
    total_cogs: Amount


class SyncResult(BaseModel):
    """Reconciliation of one department's two COGS figures."""
    department: str
    display_name: str
    hotel_pl_cogs: Amount
    department_pl_cogs: Amount
    difference: Amount
    percentage_diff: Percentage
    is_synced: bool
    reason: Optional[str] = None
    possible_causes: list[str] = []


class SyncReport(BaseModel):
    """Per-department and overall COGS sync status."""
    results: list[SyncResult] = []
    total_hotel_pl_cogs: Amount
    total_department_pl_cogs: Amount
    total_difference: Amount
    overall_synced: bool
    synced_count: int
    discrepancy_count: int
    sync_percentage: Percentage


# =============================================================================
# HOTEL ROLL-UP
# =============================================================================

class HotelPLSummary(BaseModel):
    """Totals across departments."""
    total_revenue: Amount
    total_cogs: Amount
    gross_profit: Amount
    gross_margin: Percentage
    total_tax: Amount
    net_profit: Amount
    net_margin: Percentage
    total_orders: int
    avg_order_value: Amount


class InventoryValuation(BaseModel):
    """Stock on hand of one department at cost."""
    department: str
    display_name: str
    total_value: Amount
    item_count: int
    low_stock_count: int


class LowStockItem(BaseModel):
    """Inventory row below its minimum stock level."""
    id: str
    name: str
    department: str  # display name
    current_stock: Quantity
    min_stock_level: Quantity
    unit: str
    percent_below_min: Percentage


class HotelPLReport(BaseModel):
    """Hotel-wide P&L with per-department reports and COGS sync check."""
    period: Period
    summary: HotelPLSummary
    departments: list[DepartmentPLReport] = []
    sync: SyncReport

    inventory_valuation: list[InventoryValuation] = []
    total_inventory_value: Amount = Field(default=Decimal("0"))
    low_stock_items: list[LowStockItem] = []

    comparison_type: Optional[ComparisonType] = None
    comparison_period: Optional[Period] = None
    comparison: Optional[PLComparison] = None

    generated_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# COMPARATIVE REPORT
# =============================================================================

class ComparativePeriods(BaseModel):
    """Current and previous window of a comparative report, with labels."""
    mode: ComparativeMode
    current: Period
    previous: Period
    current_label: str
    previous_label: str


class DepartmentComparison(BaseModel):
    """One department's metrics in both windows."""
    department: str
    display_name: str
    comparison: PLComparison


class ComparativePLReport(BaseModel):
    """Hotel totals and per-department deltas across two windows."""
    periods: ComparativePeriods
    total: PLComparison
    departments: list[DepartmentComparison] = []
    generated_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# CONFIGURATION
# =============================================================================

class ReportConfig(BaseModel):
    """Configuration for the P&L report engine."""
    # Costing
    estimate_rate: Quantity = Field(default=Decimal("0.30"))
    line_total_tolerance: Amount = Field(default=Decimal("0.01"))

    # Sync thresholds
    sync_absolute_tolerance: Amount = Field(default=Decimal("1"))
    sync_percent_tolerance: Percentage = Field(default=Decimal("0.1"))

    # Order filters (None = all)
    order_statuses: Optional[list[str]] = None
    payment_statuses: Optional[list[str]] = None

    # Rendering
    currency_symbol: str = "₹"

    # Features
    cache_enabled: bool = True
    cache_max_entries: int = Field(default=256, ge=1)
