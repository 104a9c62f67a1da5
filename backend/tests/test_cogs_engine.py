"""
Hotel P&L - COGS Engine Tests

For the aggregator:
- Recipe-based and estimated lines
- No orders, no COGS
- Percentages close to 100
- Dirty data degrades to zero cost, never raises
"""

import pytest
from decimal import Decimal

from app.models.hotel import InventoryItem, MenuItem, OrderItem, RecipeIngredient
from app.models.pl import ESTIMATED_CATEGORY
from app.services.cogs_engine import (
    calculate_order_item_cost,
    calculate_recipe_cost,
    compute_cogs,
    compute_menu_item_profitability,
    find_line_total_mismatches,
)


def _line(id, order_id, menu_item_id, quantity, unit_price, total_price=None, item_name=None):
    unit_price = Decimal(unit_price)
    return OrderItem(
        id=id,
        order_id=order_id,
        menu_item_id=menu_item_id,
        item_name=item_name,
        quantity=quantity,
        unit_price=unit_price,
        total_price=Decimal(total_price) if total_price is not None else unit_price * quantity,
    )


class TestEndToEnd:
    """Two orders: one recipe dish, one recipe-less dish."""

    def test_scenario_totals(self, order_items, menu_items, inventory):
        result = compute_cogs({"A", "B"}, order_items, menu_items, inventory)

        assert result.total_cogs == Decimal("250")
        assert result.recipe_based_item_count == 1
        assert result.estimated_item_count == 1
        assert result.has_estimated_costs

    def test_scenario_breakdown(self, order_items, menu_items, inventory):
        result = compute_cogs({"A", "B"}, order_items, menu_items, inventory)

        categories = [c.category for c in result.ingredient_breakdown]
        assert categories == ["dairy products", ESTIMATED_CATEGORY]

        dairy, estimated = result.ingredient_breakdown
        assert dairy.total_cost == Decimal("160")
        assert dairy.percentage == Decimal("64")
        assert estimated.total_cost == Decimal("90")
        assert estimated.percentage == Decimal("36")
        assert sum(c.percentage for c in result.ingredient_breakdown) == Decimal("100")

    def test_ingredient_details(self, order_items, menu_items, inventory):
        result = compute_cogs({"A", "B"}, order_items, menu_items, inventory)

        paneer = result.ingredient_breakdown[0].ingredients[0]
        assert paneer.name == "Paneer"
        assert paneer.unit == "kg"
        assert paneer.total_quantity == Decimal("0.4")
        assert paneer.total_cost == Decimal("160")
        assert paneer.used_in == ["Paneer Tikka"]
        assert not paneer.is_estimated

        thali = result.ingredient_breakdown[1].ingredients[0]
        assert thali.name == "Veg Thali"
        assert thali.is_estimated
        assert thali.total_quantity == Decimal("1")

    def test_average_cost_per_order(self, order_items, menu_items, inventory):
        result = compute_cogs({"A", "B"}, order_items, menu_items, inventory)
        assert result.average_cost_per_order == Decimal("125")


class TestZeroOrders:
    """No orders in the period means no COGS."""

    def test_empty_order_set_forces_zero(self, order_items, menu_items, inventory):
        result = compute_cogs(set(), order_items, menu_items, inventory)

        assert result.total_cogs == 0
        assert result.ingredient_breakdown == []
        assert result.recipe_based_item_count == 0
        assert result.estimated_item_count == 0

    def test_order_items_outside_set_are_ignored(self, order_items, menu_items, inventory):
        result = compute_cogs({"A"}, order_items, menu_items, inventory)

        assert result.total_cogs == Decimal("160")
        assert result.estimated_item_count == 0

    def test_orders_without_items(self, menu_items, inventory):
        result = compute_cogs({"A"}, [], menu_items, inventory)

        assert result.total_cogs == 0
        assert result.ingredient_breakdown == []


class TestEstimation:
    """Recipe-less items are estimated from line revenue."""

    def test_estimate_uses_line_total_not_menu_price(self):
        menu = [MenuItem(id="m-1", name="Chef Special", price=Decimal("100"), ingredients=[])]
        items = [_line("oi-1", "X", "m-1", 1, "250")]

        result = compute_cogs({"X"}, items, menu, [])

        assert result.total_cogs == Decimal("75")
        assert result.ingredient_breakdown[0].category == ESTIMATED_CATEGORY
        assert result.ingredient_breakdown[0].percentage == Decimal("100")

    def test_absent_ingredients_count_as_recipe_less(self):
        menu = [MenuItem(id="m-1", name="Soda", price=Decimal("60"))]
        items = [_line("oi-1", "X", "m-1", 2, "60")]

        result = compute_cogs({"X"}, items, menu, [])

        assert result.total_cogs == Decimal("36")
        assert result.estimated_item_count == 1

    def test_custom_estimate_rate(self):
        menu = [MenuItem(id="m-1", name="Massage", price=Decimal("2000"))]
        items = [_line("oi-1", "X", "m-1", 1, "2000")]

        result = compute_cogs({"X"}, items, menu, [], estimate_rate=Decimal("0.2"))

        assert result.total_cogs == Decimal("400")

    def test_estimated_items_grouped_by_name(self):
        menu = [MenuItem(id="m-1", name="Lime Soda", price=Decimal("50"))]
        items = [
            _line("oi-1", "X", "m-1", 1, "50"),
            _line("oi-2", "Y", "m-1", 3, "50"),
        ]

        result = compute_cogs({"X", "Y"}, items, menu, [])

        details = result.ingredient_breakdown[0].ingredients
        assert len(details) == 1
        assert details[0].total_quantity == Decimal("4")
        assert details[0].total_cost == Decimal("60")


class TestDataQuality:
    """Dirty data costs zero for the affected line and is reported."""

    def test_missing_inventory_row(self, inventory):
        menu = [MenuItem(
            id="m-1",
            name="Mystery Curry",
            price=Decimal("200"),
            ingredients=[
                RecipeIngredient(inventory_id="inv-ghost", quantity=Decimal("100"), unit="g"),
                RecipeIngredient(inventory_id="inv-onion", quantity=Decimal("250"), unit="g"),
            ],
        )]
        items = [_line("oi-1", "X", "m-1", 1, "200")]

        result = compute_cogs({"X"}, items, menu, inventory)

        assert result.total_cogs == Decimal("10")
        assert result.recipe_based_item_count == 1
        assert result.data_quality.missing_inventory_items == ["inv-ghost"]

    def test_unconvertible_unit_costs_zero(self, inventory):
        menu = [MenuItem(
            id="m-1",
            name="Paneer Shake",
            price=Decimal("150"),
            ingredients=[RecipeIngredient(inventory_id="inv-paneer", quantity=Decimal("30"), unit="ml")],
        )]
        items = [_line("oi-1", "X", "m-1", 1, "150")]

        result = compute_cogs({"X"}, items, menu, inventory)

        assert result.total_cogs == 0
        assert result.ingredient_breakdown[0].percentage == 0
        line = result.data_quality.unconvertible_lines[0]
        assert line.menu_item == "Paneer Shake"
        assert line.recipe_unit == "ml"
        assert line.inventory_unit == "kg"

    def test_deleted_menu_item_is_estimated_under_its_order_name(self):
        items = [_line("oi-1", "X", "m-deleted", 1, "100", item_name="Old Special")]

        result = compute_cogs({"X"}, items, [], [])

        assert result.total_cogs == Decimal("30")
        assert result.data_quality.missing_menu_items == ["oi-1"]
        assert result.ingredient_breakdown[0].ingredients[0].name == "Old Special"

    def test_line_without_any_name(self):
        items = [_line("oi-1", "X", None, 1, "100")]

        result = compute_cogs({"X"}, items, [], [])

        assert result.ingredient_breakdown[0].ingredients[0].name == "Unknown Item"
        assert result.data_quality.missing_menu_items == []

    def test_unrecognized_unit_is_counted_and_flagged(self):
        inventory = [InventoryItem(id="inv-mint", name="Mint", category="Herbs", unit="pcs", cost_price=Decimal("5"))]
        menu = [MenuItem(
            id="m-1",
            name="Mojito",
            price=Decimal("250"),
            ingredients=[RecipeIngredient(inventory_id="inv-mint", quantity=Decimal("2"), unit="Handful")],
        )]
        items = [_line("oi-1", "X", "m-1", 1, "250")]

        result = compute_cogs({"X"}, items, menu, inventory)

        assert result.total_cogs == Decimal("10")
        assert result.data_quality.unrecognized_units == ["Handful"]

    def test_line_total_mismatch_flagged_not_corrected(self):
        menu = [MenuItem(id="m-1", name="Tea", price=Decimal("100"))]
        items = [_line("oi-1", "X", "m-1", 2, "100", total_price="150")]

        result = compute_cogs({"X"}, items, menu, [])

        assert result.total_cogs == Decimal("45")
        mismatch = result.data_quality.line_total_mismatches[0]
        assert mismatch.expected_total == Decimal("200")
        assert mismatch.difference == Decimal("-50")

    def test_negative_quantities_do_not_add_cost(self, inventory):
        menu = [MenuItem(
            id="m-1",
            name="Reversed Tikka",
            price=Decimal("350"),
            ingredients=[RecipeIngredient(inventory_id="inv-paneer", quantity=Decimal("-200"), unit="g")],
        )]
        items = [_line("oi-1", "X", "m-1", -3, "350")]

        result = compute_cogs({"X"}, items, menu, inventory)

        assert result.total_cogs == 0
        assert result.recipe_based_item_count == 0
        invalid = result.data_quality.invalid_quantities
        assert [(i.order_item_id, i.quantity) for i in invalid] == [("oi-1", Decimal("-3"))]
        assert result.data_quality.issue_count >= 1

    def test_non_positive_recipe_line_costs_zero(self, inventory):
        menu = [MenuItem(
            id="m-1",
            name="Paneer Salad",
            price=Decimal("250"),
            ingredients=[
                RecipeIngredient(inventory_id="inv-paneer", quantity=Decimal("-200"), unit="g"),
                RecipeIngredient(inventory_id="inv-onion", quantity=Decimal("250"), unit="g"),
            ],
        )]
        items = [_line("oi-1", "X", "m-1", 2, "250")]

        result = compute_cogs({"X"}, items, menu, inventory)

        assert result.total_cogs == Decimal("20")
        line = result.data_quality.invalid_quantities[0]
        assert line.inventory_id == "inv-paneer"
        assert line.quantity == Decimal("-200")
        assert calculate_recipe_cost(menu[0], {i.id: i for i in inventory}) == Decimal("10")

    def test_zero_quantity_estimated_line(self):
        menu = [MenuItem(id="m-1", name="Tea", price=Decimal("100"))]
        items = [_line("oi-1", "X", "m-1", 0, "100", total_price="100")]

        result = compute_cogs({"X"}, items, menu, [])

        assert result.total_cogs == 0
        assert result.estimated_item_count == 0
        assert len(result.data_quality.invalid_quantities) == 1

    def test_consistent_lines_are_not_flagged(self, order_items):
        assert find_line_total_mismatches(order_items) == []

    def test_rounding_within_tolerance(self):
        items = [_line("oi-1", "X", None, 3, "33.33", total_price="100")]
        assert find_line_total_mismatches(items) == []


class TestAggregation:
    """Category buckets and per-ingredient running totals."""

    def test_ingredient_shared_across_menu_items(self, inventory, paneer_tikka):
        masala = MenuItem(
            id="m-masala",
            name="Paneer Butter Masala",
            price=Decimal("380"),
            ingredients=[
                RecipeIngredient(inventory_id="inv-paneer", quantity=Decimal("150"), unit="g"),
                RecipeIngredient(inventory_id="inv-cream", quantity=Decimal("50"), unit="ml"),
            ],
        )
        items = [
            _line("oi-1", "X", "m-tikka", 1, "350"),
            _line("oi-2", "X", "m-tikka", 1, "350"),
            _line("oi-3", "Y", "m-masala", 2, "380"),
        ]

        result = compute_cogs({"X", "Y"}, items, [paneer_tikka, masala], inventory)

        # tikka 2 * 80 + masala 2 * (60 + 12.5)
        assert result.total_cogs == Decimal("305")
        assert len(result.ingredient_breakdown) == 1

        paneer, cream = result.ingredient_breakdown[0].ingredients
        assert paneer.used_in == ["Paneer Tikka", "Paneer Butter Masala"]
        assert paneer.total_quantity == Decimal("0.7")
        assert paneer.total_cost == Decimal("280")
        assert cream.total_cost == Decimal("25")

    def test_categories_sorted_by_cost(self, inventory):
        menu = [MenuItem(
            id="m-1",
            name="Onion Pakora",
            price=Decimal("120"),
            ingredients=[
                RecipeIngredient(inventory_id="inv-onion", quantity=Decimal("500"), unit="g"),
                RecipeIngredient(inventory_id="inv-paneer", quantity=Decimal("10"), unit="g"),
            ],
        )]
        items = [_line("oi-1", "X", "m-1", 1, "120")]

        result = compute_cogs({"X"}, items, menu, inventory)

        costs = [c.total_cost for c in result.ingredient_breakdown]
        assert costs == sorted(costs, reverse=True)
        assert result.ingredient_breakdown[0].category == "Vegetables"

    def test_percentages_close_to_hundred_with_thirds(self, inventory):
        inventory = [
            InventoryItem(id=f"inv-{c}", name=c, category=c, unit="pcs", cost_price=Decimal("1"))
            for c in ("a", "b", "c")
        ]
        menu = [MenuItem(
            id="m-1",
            name="Trio",
            price=Decimal("10"),
            ingredients=[RecipeIngredient(inventory_id=i.id, quantity=Decimal("1"), unit="pcs") for i in inventory],
        )]
        items = [_line("oi-1", "X", "m-1", 1, "10")]

        result = compute_cogs({"X"}, items, menu, inventory)

        total = sum(c.percentage for c in result.ingredient_breakdown)
        assert abs(total - Decimal("100")) <= Decimal("0.01") * len(result.ingredient_breakdown)

    def test_repeated_calls_are_identical(self, order_items, menu_items, inventory):
        first = compute_cogs({"A", "B"}, order_items, menu_items, inventory)
        second = compute_cogs({"A", "B"}, order_items, menu_items, inventory)
        assert first.model_dump() == second.model_dump()

    def test_inputs_are_not_mutated(self, order_items, menu_items, inventory):
        before = [m.model_dump() for m in menu_items], [i.model_dump() for i in inventory]
        compute_cogs({"A", "B"}, order_items, menu_items, inventory)
        after = [m.model_dump() for m in menu_items], [i.model_dump() for i in inventory]
        assert before == after


class TestOrderItemCost:
    """Per order line costing."""

    def test_lines_multiply_by_sold_quantity(self, order_items, paneer_tikka, inventory):
        inventory_map = {i.id: i for i in inventory}
        lines = calculate_order_item_cost(order_items[0], paneer_tikka, inventory_map)

        assert len(lines) == 1
        assert lines[0].cost == Decimal("160")
        assert lines[0].quantity == Decimal("0.4")
        assert lines[0].found and lines[0].convertible

    def test_recipe_cost_is_per_serving(self, paneer_tikka, inventory):
        assert calculate_recipe_cost(paneer_tikka, {i.id: i for i in inventory}) == Decimal("80")


class TestMenuItemProfitability:
    """Per menu item sales-weighted margins."""

    def test_profitability_rows(self, order_items, menu_items, inventory):
        rows = compute_menu_item_profitability({"A", "B"}, order_items, menu_items, inventory)

        tikka, thali = rows
        assert tikka.name == "Paneer Tikka"
        assert tikka.recipe_cost == Decimal("80")
        assert tikka.total_quantity == 2
        assert tikka.total_revenue == Decimal("700")
        assert tikka.total_cost == Decimal("160")
        assert tikka.profit == Decimal("540")
        assert tikka.margin_percent == Decimal("77.14")
        assert tikka.unit_margin == Decimal("270")

        assert not thali.has_recipe
        assert thali.recipe_cost == Decimal("90")
        assert thali.margin_percent == Decimal("70")

    def test_unsold_items_are_left_out(self, order_items, menu_items, inventory):
        rows = compute_menu_item_profitability({"A"}, order_items, menu_items, inventory)
        assert [r.name for r in rows] == ["Paneer Tikka"]

    def test_sort_by_revenue(self, order_items, menu_items, inventory):
        rows = compute_menu_item_profitability({"A", "B"}, order_items, menu_items, inventory, sort_by="revenue")
        assert [r.total_revenue for r in rows] == [Decimal("700"), Decimal("300")]

    def test_unknown_sort_key(self, order_items, menu_items, inventory):
        with pytest.raises(ValueError):
            compute_menu_item_profitability({"A"}, order_items, menu_items, inventory, sort_by="colour")
