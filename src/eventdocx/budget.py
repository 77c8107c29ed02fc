"""Budget grouping and currency display for the proposal document."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Mapping, Optional

from eventdocx.entities import EM_DASH

OTHER_CATEGORY = "other"


def to_number(value: Any) -> float:
    """Coerce a quantity or price to a non-negative float; junk becomes 0."""
    if value is None or value == "" or isinstance(value, bool):
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    if n != n or n in (float("inf"), float("-inf")):
        return 0.0
    return max(n, 0.0)


def format_rupiah(value: Any) -> str:
    """Format *value* as ``Rp 1.234.567,89``.

    Thousands use ``.`` and decimals ``,``; missing or invalid values
    render as ``Rp 0,00``.
    """
    if value is None or value == "" or isinstance(value, bool):
        return "Rp 0,00"
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return "Rp 0,00"
    if not amount.is_finite():
        return "Rp 0,00"
    cents = abs(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    int_part, _, dec_part = f"{cents:.2f}".partition(".")
    grouped = f"{int(int_part):,}".replace(",", ".")
    sign = "-" if amount < 0 and cents != 0 else ""
    return f"{sign}Rp {grouped},{dec_part}"


def category_label(category: Any) -> str:
    if category is None:
        return OTHER_CATEGORY
    label = str(category).strip()
    return label or OTHER_CATEGORY


@dataclass
class BudgetLine:
    """A budget line as stored on the event."""

    item: Optional[str] = None
    type: str = "outcome"
    qty: Any = 0
    price_per_qty: Any = 0
    description: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BudgetLine:
        return cls(
            item=data.get("item"),
            type=str(data.get("type") or "outcome"),
            qty=data.get("qty", 0),
            price_per_qty=data.get("pricePerQty", data.get("price_per_qty", 0)),
            description=data.get("description"),
            category=data.get("category"),
        )

    @property
    def quantity(self) -> float:
        return to_number(self.qty)

    @property
    def unit_price(self) -> float:
        return to_number(self.price_per_qty)

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


@dataclass
class BudgetItem:
    """A budget line ready for the template."""

    item: str
    type_label: str
    qty: float
    price_per_qty: float
    price_display: str
    description: str
    description_markup: str
    line_total: float
    line_total_display: str

    def as_render_data(self) -> dict[str, Any]:
        return {
            "item": self.item,
            "type": self.type_label,
            "qty": _plain_number(self.qty),
            "price_per_qty": _plain_number(self.price_per_qty),
            "price_display": self.price_display,
            "description": self.description,
            "description_markup": self.description_markup,
            "line_total": _plain_number(self.line_total),
            "line_total_display": self.line_total_display,
        }


@dataclass
class BudgetCategory:
    name: str
    items: list[BudgetItem] = field(default_factory=list)
    total: float = 0.0

    @property
    def total_display(self) -> str:
        return format_rupiah(self.total)


def _plain_number(n: float) -> Any:
    return int(n) if float(n).is_integer() else n


def group_budget(
    lines: Iterable[BudgetLine],
    describe: Callable[[Optional[str]], str],
) -> list[BudgetCategory]:
    """Group *lines* by category label in first-seen order.

    *describe* renders each description to paragraph markup; it is called
    once per line in document order, which keeps hyperlink ids ascending
    through the rendered tables.
    """
    lines = list(lines)
    order: list[str] = []
    grouped: dict[str, list[BudgetLine]] = {}
    for line in lines:
        label = category_label(line.category)
        if label not in grouped:
            grouped[label] = []
            order.append(label)
        grouped[label].append(line)

    categories: list[BudgetCategory] = []
    for label in order:
        category = BudgetCategory(name=label)
        for line in grouped[label]:
            category.items.append(BudgetItem(
                item=line.item if line.item is not None else EM_DASH,
                type_label="Income" if line.type == "income" else "Outcome",
                qty=line.quantity,
                price_per_qty=line.unit_price,
                price_display=format_rupiah(line.unit_price),
                description=line.description if line.description is not None else EM_DASH,
                description_markup=describe(line.description),
                line_total=line.line_total,
                line_total_display=format_rupiah(line.line_total),
            ))
            category.total += line.line_total
        categories.append(category)
    return categories
