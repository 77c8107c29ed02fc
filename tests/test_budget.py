"""Tests for budget grouping and currency display."""

from __future__ import annotations

import pytest

from eventdocx.budget import (
    OTHER_CATEGORY,
    BudgetLine,
    category_label,
    format_rupiah,
    group_budget,
    to_number,
)
from eventdocx.entities import EM_DASH


def line(item, category, qty=1, price=0, **kw) -> BudgetLine:
    return BudgetLine(item=item, category=category, qty=qty, price_per_qty=price, **kw)


class TestFormatRupiah:

    @pytest.mark.parametrize("value,expected", [
        (1234.5, "Rp 1.234,50"),
        (0, "Rp 0,00"),
        (1234567.891, "Rp 1.234.567,89"),
        ("2500000", "Rp 2.500.000,00"),
        (0.005, "Rp 0,01"),
        (-1500, "-Rp 1.500,00"),
    ])
    def test_values(self, value, expected):
        assert format_rupiah(value) == expected

    @pytest.mark.parametrize("value", [None, "", "junk", float("nan"), True])
    def test_invalid_is_zero(self, value):
        assert format_rupiah(value) == "Rp 0,00"


class TestToNumber:

    def test_coercion(self):
        assert to_number("3") == 3.0
        assert to_number(2.5) == 2.5

    @pytest.mark.parametrize("value", [None, "", "abc", -2, float("nan"), float("inf"), [1]])
    def test_junk_and_negative_are_zero(self, value):
        assert to_number(value) == 0.0


class TestBudgetLine:

    def test_from_api_dict(self):
        b = BudgetLine.from_dict({
            "item": "Snacks", "type": "income", "qty": "4",
            "pricePerQty": 2500, "description": "x", "category": "Food",
        })
        assert b.quantity == 4
        assert b.unit_price == 2500
        assert b.line_total == 10000
        assert b.type == "income"

    def test_defaults(self):
        b = BudgetLine.from_dict({})
        assert b.type == "outcome"
        assert b.line_total == 0


class TestGroupBudget:

    def test_first_seen_order_and_other(self):
        lines = [line("a", "Food"), line("b", ""), line("c", "Food"), line("d", None)]
        cats = group_budget(lines, lambda d: "")
        assert [c.name for c in cats] == ["Food", OTHER_CATEGORY]
        assert [i.item for i in cats[0].items] == ["a", "c"]
        assert [i.item for i in cats[1].items] == ["b", "d"]

    def test_totals(self):
        lines = [line("a", "Food", qty=2, price=1500), line("b", "Food", qty=3, price=1000)]
        cat = group_budget(lines, lambda d: "")[0]
        assert [i.line_total for i in cat.items] == [3000, 3000]
        assert cat.total == 6000
        assert cat.total_display == "Rp 6.000,00"

    def test_negative_inputs_clamped(self):
        cat = group_budget([line("a", "x", qty=-2, price=100)], lambda d: "")[0]
        assert cat.items[0].qty == 0
        assert cat.total == 0

    def test_describe_called_in_grouped_order(self):
        calls = []
        lines = [
            line("a", "Food", description="1"),
            line("b", "Venue", description="2"),
            line("c", "Food", description="3"),
        ]
        group_budget(lines, lambda d: calls.append(d) or d)
        assert calls == ["1", "3", "2"]

    def test_render_data(self):
        lines = [line("Tickets", "Sales", qty=2, price=1500.5, type="income", description="desk")]
        item = group_budget(lines, lambda d: f"<p>{d}</p>")[0].items[0]
        data = item.as_render_data()
        assert data["type"] == "Income"
        assert data["qty"] == 2
        assert data["price_display"] == "Rp 1.500,50"
        assert data["line_total"] == 3001
        assert data["line_total_display"] == "Rp 3.001,00"
        assert data["description_markup"] == "<p>desk</p>"

    def test_missing_item_and_unknown_type(self):
        item = group_budget([line(None, "x", type="whatever")], lambda d: "")[0].items[0]
        assert item.item == EM_DASH
        assert item.type_label == "Outcome"
        assert item.description == EM_DASH

    def test_empty(self):
        assert group_budget([], lambda d: "") == []

    def test_category_label(self):
        assert category_label("  Food ") == "Food"
        assert category_label("   ") == OTHER_CATEGORY
