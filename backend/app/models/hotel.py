"""
Hotel P&L - Department Row Schemas
Rows as fetched from the hosted backend (bar, restaurant, kitchen, spa).

The costing engine references these rows, it never mutates them.
Field names follow the backend's snake_case columns.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.types import Amount, Quantity


class Department(str, Enum):
    """Departments that take orders."""
    BAR = "bar"
    RESTAURANT = "restaurant"
    KITCHEN = "kitchen"
    SPA = "spa"


DEPARTMENT_DISPLAY_NAMES: dict[str, str] = {
    Department.BAR.value: "Bar",
    Department.RESTAURANT.value: "Restaurant",
    Department.KITCHEN.value: "Kitchen",
    Department.SPA.value: "Spa",
}


# =============================================================================
# INVENTORY & RECIPES
# =============================================================================

class InventoryItem(BaseModel):
    """Department inventory row with cost per stocked unit."""
    id: str
    name: str
    category: Optional[str] = None
    unit: Optional[str] = None  # stocked unit, e.g. "kg"
    cost_price: Amount = Field(default=Decimal("0"))  # per stocked unit
    current_stock: Quantity = Field(default=Decimal("0"))
    min_stock_level: Quantity = Field(default=Decimal("0"))

    @field_validator("cost_price")
    @classmethod
    def _cost_not_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError(f"cost_price must be non-negative, got: {v}")
        return v


class RecipeIngredient(BaseModel):
    """One line of a menu item's recipe, stated per single serving."""
    inventory_id: str
    inventory_name: Optional[str] = None
    quantity: Quantity = Field(default=Decimal("0"))
    unit: Optional[str] = None  # may differ from the inventory unit


class MenuItem(BaseModel):
    """Menu item with optional recipe."""
    id: str
    name: str
    category: Optional[str] = None
    price: Amount = Field(default=Decimal("0"))
    ingredients: Optional[list[RecipeIngredient]] = None

    @property
    def has_recipe(self) -> bool:
        return bool(self.ingredients)


# =============================================================================
# ORDERS
# =============================================================================

class Order(BaseModel):
    """Order header with totals as written at time of sale."""
    id: str
    order_number: Optional[str] = None
    department: Optional[str] = None
    order_type: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None

    subtotal: Amount = Field(default=Decimal("0"))
    tax_amount: Amount = Field(default=Decimal("0"))
    discount_amount: Amount = Field(default=Decimal("0"))
    total_amount: Amount = Field(default=Decimal("0"))

    created_at: datetime


class OrderItem(BaseModel):
    """
    Order line. Immutable once costed.

    total_price is trusted as written; it is never recomputed from
    quantity * unit_price.
    """
    id: str
    order_id: str
    menu_item_id: Optional[str] = None
    item_name: Optional[str] = None  # may outlive the menu item
    quantity: int = 1
    unit_price: Amount = Field(default=Decimal("0"))
    total_price: Amount = Field(default=Decimal("0"))


# =============================================================================
# PERIOD
# =============================================================================

class ComparisonType(str, Enum):
    """How the comparison window is derived from the current period."""
    PREVIOUS = "previous"
    LAST_WEEK = "last_week"
    LAST_MONTH = "last_month"
    LAST_YEAR = "last_year"


class ComparativeMode(str, Enum):
    """Calendar presets for side-by-side period reports."""
    MONTH_OVER_MONTH = "mom"
    QUARTER_OVER_QUARTER = "qoq"
    YEAR_OVER_YEAR = "yoy"
    CUSTOM = "custom"


class Period(BaseModel):
    """Closed calendar-date interval [start, end]."""
    start: date
    end: date

    @field_validator("start", "end", mode="before")
    @classmethod
    def _datetime_to_date(cls, v):
        if isinstance(v, datetime):
            return v.date()
        return v

    @model_validator(mode="after")
    def _ordered(self) -> "Period":
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")
        return self

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, moment: datetime | date) -> bool:
        """Inclusive containment on the calendar date of the moment."""
        day = moment.date() if isinstance(moment, datetime) else moment
        return self.start <= day <= self.end


class DepartmentSnapshot(BaseModel):
    """Everything a department report needs, fetched ahead of time."""
    department: str
    display_name: Optional[str] = None
    orders: list[Order] = []
    order_items: list[OrderItem] = []
    menu_items: list[MenuItem] = []
    inventory: list[InventoryItem] = []

    # Overrides the configured estimate rate (e.g. spa services)
    estimate_rate: Optional[Quantity] = None

    @property
    def label(self) -> str:
        return (
            self.display_name
            or DEPARTMENT_DISPLAY_NAMES.get(self.department)
            or self.department.replace("_", " ").title()
        )
