from app.models.hotel import (
    Department,
    DepartmentSnapshot,
    InventoryItem,
    MenuItem,
    Order,
    OrderItem,
    RecipeIngredient,
    ComparativeMode,
    ComparisonType,
    Period,
)
from app.models.pl import (
    COGSResult,
    CategoryCostBreakdown,
    DataQualityReport,
    DepartmentPLReport,
    HotelPLReport,
    ComparativePLReport,
    InventoryValuation,
    LowStockItem,
    MenuItemProfitability,
    PLMetrics,
    ReportConfig,
    SyncReport,
)
from app.models.units import CanonicalUnit, UnitCategory

__all__ = [
    "Department",
    "DepartmentSnapshot",
    "InventoryItem",
    "MenuItem",
    "Order",
    "OrderItem",
    "RecipeIngredient",
    "ComparativeMode",
    "ComparisonType",
    "Period",
    "COGSResult",
    "CategoryCostBreakdown",
    "DataQualityReport",
    "DepartmentPLReport",
    "HotelPLReport",
    "ComparativePLReport",
    "InventoryValuation",
    "LowStockItem",
    "MenuItemProfitability",
    "PLMetrics",
    "ReportConfig",
    "SyncReport",
    "CanonicalUnit",
    "UnitCategory",
]
