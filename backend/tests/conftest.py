"""Shared snapshot fixtures: a small restaurant with one recipe and one recipe-less dish."""

from datetime import datetime
from decimal import Decimal

import pytest

from app.models.hotel import (
    DepartmentSnapshot,
    InventoryItem,
    MenuItem,
    Order,
    OrderItem,
    RecipeIngredient,
)


@pytest.fixture
def inventory() -> list[InventoryItem]:
    return [
        InventoryItem(id="inv-paneer", name="Paneer", category="dairy_products", unit="kg", cost_price=Decimal("400")),
        InventoryItem(id="inv-cream", name="Cream", category="dairy_products", unit="l", cost_price=Decimal("250")),
        InventoryItem(id="inv-onion", name="Onion", category="Vegetables", unit="kg", cost_price=Decimal("40")),
    ]


@pytest.fixture
def paneer_tikka() -> MenuItem:
    return MenuItem(
        id="m-tikka",
        name="Paneer Tikka",
        category="Starters",
        price=Decimal("350"),
        ingredients=[RecipeIngredient(inventory_id="inv-paneer", quantity=Decimal("200"), unit="g")],
    )


@pytest.fixture
def veg_thali() -> MenuItem:
    return MenuItem(id="m-thali", name="Veg Thali", category="Mains", price=Decimal("300"), ingredients=[])


@pytest.fixture
def menu_items(paneer_tikka, veg_thali) -> list[MenuItem]:
    return [paneer_tikka, veg_thali]


@pytest.fixture
def orders() -> list[Order]:
    return [
        Order(
            id="A",
            subtotal=Decimal("700"),
            tax_amount=Decimal("35"),
            discount_amount=Decimal("0"),
            total_amount=Decimal("735"),
            status="completed",
            payment_status="paid",
            created_at=datetime(2024, 3, 10, 13, 30),
        ),
        Order(
            id="B",
            subtotal=Decimal("300"),
            tax_amount=Decimal("15"),
            discount_amount=Decimal("15"),
            total_amount=Decimal("300"),
            status="completed",
            payment_status="paid",
            created_at=datetime(2024, 3, 12, 20, 0),
        ),
    ]


@pytest.fixture
def order_items() -> list[OrderItem]:
    return [
        OrderItem(
            id="oi-1",
            order_id="A",
            menu_item_id="m-tikka",
            item_name="Paneer Tikka",
            quantity=2,
            unit_price=Decimal("350"),
            total_price=Decimal("700"),
        ),
        OrderItem(
            id="oi-2",
            order_id="B",
            menu_item_id="m-thali",
            item_name="Veg Thali",
            quantity=1,
            unit_price=Decimal("300"),
            total_price=Decimal("300"),
        ),
    ]


@pytest.fixture
def snapshot(orders, order_items, menu_items, inventory) -> DepartmentSnapshot:
    return DepartmentSnapshot(
        department="restaurant",
        orders=orders,
        order_items=order_items,
        menu_items=menu_items,
        inventory=inventory,
    )
