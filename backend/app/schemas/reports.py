from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from app.core.types import Quantity
from app.models.hotel import (
    ComparativeMode,
    ComparisonType,
    DepartmentSnapshot,
    InventoryItem,
    MenuItem,
    OrderItem,
    Period,
)
from app.models.pl import DepartmentCOGS


class COGSRequest(BaseModel):
    """Schema for a raw COGS computation over an explicit order set."""
    order_ids: list[str]
    order_items: list[OrderItem] = []
    menu_items: list[MenuItem] = []
    inventory: list[InventoryItem] = []
    estimate_rate: Optional[Quantity] = None


class MenuProfitabilityRequest(COGSRequest):
    """Schema for menu item profitability over an explicit order set."""
    sort_by: str = "margin"


class DepartmentReportRequest(BaseModel):
    """Schema for a department P&L report."""
    snapshot: DepartmentSnapshot
    period: Period
    comparison_type: Optional[ComparisonType] = None


class HotelReportRequest(BaseModel):
    """Schema for a hotel-wide P&L report."""
    snapshots: list[DepartmentSnapshot]
    period: Period
    comparison_type: Optional[ComparisonType] = None


class ComparativeReportRequest(BaseModel):
    """Schema for a month, quarter or year comparative report."""
    snapshots: list[DepartmentSnapshot]
    mode: ComparativeMode = ComparativeMode.MONTH_OVER_MONTH
    base_date: Optional[date] = None  # defaults to today
    current: Optional[Period] = None  # custom mode only
    previous: Optional[Period] = None  # custom mode only


class SyncRequest(BaseModel):
    """Schema for reconciling two sets of department COGS figures."""
    hotel_cogs: list[DepartmentCOGS]
    department_cogs: list[DepartmentCOGS]
    absolute_tolerance: Optional[Decimal] = None
    percent_tolerance: Optional[Decimal] = None


class ComparisonPeriodResponse(BaseModel):
    """Schema for a derived comparison window."""
    comparison_type: ComparisonType
    current: Period
    comparison: Period
