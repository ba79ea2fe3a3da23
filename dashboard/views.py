"""
dashboard/views.py

Render-time views over snapshot records.

Snapshot records are passed through untouched by normalization, so any
sub-field may be missing or malformed. The row models below replace such
values with placeholders for display only.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agent_response.schema import DashboardSnapshot

PLACEHOLDER = "--"
OTHER_CATEGORY = "Other"


def _as_int(value: Any) -> int:
    number = _as_float(value)
    return int(number) if math.isfinite(number) else 0


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().lstrip("$").replace(",", ""))
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value if value.strip() else PLACEHOLDER
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return PLACEHOLDER


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class MetricsView(_Row):
    total_skus: int = Field(default=0, alias="totalSKUs")
    low_stock_count: int = Field(default=0, alias="lowStockCount")
    pending_orders: int = Field(default=0, alias="pendingOrders")
    top_seller: str = Field(default=PLACEHOLDER, alias="topSeller")

    @field_validator("total_skus", "low_stock_count", "pending_orders", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return max(0, _as_int(value))

    @field_validator("top_seller", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)


class LowStockAlertRow(_Row):
    product: str = PLACEHOLDER
    current_stock: int = Field(default=0, alias="currentStock")
    threshold: int = 0
    status: str = PLACEHOLDER
    priority: str = PLACEHOLDER
    recommended_order: int = Field(default=0, alias="recommendedOrder")

    @field_validator("current_stock", "threshold", "recommended_order", mode="before")
    @classmethod
    def _number(cls, value: Any) -> int:
        return _as_int(value)

    @field_validator("product", "status", "priority", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)


class InventoryRow(_Row):
    product: str = PLACEHOLDER
    sku: str = PLACEHOLDER
    category: str = PLACEHOLDER
    current_stock: int = Field(default=0, alias="currentStock")
    reorder_threshold: int = Field(default=0, alias="reorderThreshold")
    status: str = PLACEHOLDER
    last_restocked: str = Field(default=PLACEHOLDER, alias="lastRestocked")

    @field_validator("current_stock", "reorder_threshold", mode="before")
    @classmethod
    def _number(cls, value: Any) -> int:
        return _as_int(value)

    @field_validator("product", "sku", "category", "status", "last_restocked", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)


class SalesRow(_Row):
    product: str = PLACEHOLDER
    units_sold: int = Field(default=0, alias="unitsSold")
    revenue: float = 0.0
    trend: str = PLACEHOLDER
    category: str = OTHER_CATEGORY

    @field_validator("units_sold", mode="before")
    @classmethod
    def _units(cls, value: Any) -> int:
        return _as_int(value)

    @field_validator("revenue", mode="before")
    @classmethod
    def _revenue(cls, value: Any) -> float:
        return _as_float(value)

    @field_validator("product", "trend", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        text = _as_text(value)
        return OTHER_CATEGORY if text == PLACEHOLDER else text


class OrderLine(_Row):
    name: str = PLACEHOLDER
    quantity: int = 0

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> int:
        return _as_int(value)

    @field_validator("name", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)


class OrderRow(_Row):
    order_id: str = Field(default=PLACEHOLDER, alias="orderId")
    date: str = PLACEHOLDER
    item_count: int = Field(default=0, alias="itemCount")
    status: str = PLACEHOLDER
    supplier: str = PLACEHOLDER
    items: list[OrderLine] = Field(default_factory=list)

    @field_validator("item_count", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return _as_int(value)

    @field_validator("order_id", "date", "status", "supplier", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("items", mode="before")
    @classmethod
    def _lines(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [line for line in value if isinstance(line, dict)]


RowT = TypeVar("RowT", bound=_Row)


def to_rows(records: Optional[Iterable[Any]], model: type[RowT]) -> list[RowT]:
    """Build display rows, skipping entries that are not records at all."""
    if not records:
        return []
    return [model.model_validate(record) for record in records if isinstance(record, dict)]


def metrics_view(snapshot: DashboardSnapshot) -> Optional[MetricsView]:
    if snapshot.metrics is None:
        return None
    return MetricsView.model_validate(snapshot.metrics)


@dataclass(frozen=True)
class SalesSummary:
    """
    Aggregates shown above the sales table.
    """

    total_revenue: float = 0.0
    total_units: int = 0
    revenue_by_category: dict[str, float] = field(default_factory=dict)
    top_category: Optional[str] = None


def sales_summary(rows: Iterable[SalesRow]) -> SalesSummary:
    total_revenue = 0.0
    total_units = 0
    by_category: dict[str, float] = {}
    for row in rows:
        total_revenue += row.revenue
        total_units += row.units_sold
        by_category[row.category] = by_category.get(row.category, 0.0) + row.revenue

    top_category = max(by_category, key=by_category.__getitem__) if by_category else None
    return SalesSummary(
        total_revenue=total_revenue,
        total_units=total_units,
        revenue_by_category=by_category,
        top_category=top_category,
    )


def format_currency(value: Optional[float]) -> str:
    """Format as US dollars, dropping trailing zero cents ($5,120 / $880.5)."""
    if value is None:
        return "$0"
    amount = round(float(value), 2)
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}".rstrip("0").rstrip(".")
    return f"{sign}${text}"


_STATUS_TONES = {
    "in stock": "success",
    "completed": "success",
    "low": "warning",
    "pending": "warning",
    "out of stock": "error",
    "in transit": "info",
}

_PRIORITY_TONES = {
    "high": "error",
    "medium": "warning",
}

_TREND_SYMBOLS = {
    "up": "↑",
    "down": "↓",
}


def status_tone(status: Optional[str]) -> str:
    return _STATUS_TONES.get((status or "").strip().lower(), "neutral")


def priority_tone(priority: Optional[str]) -> str:
    return _PRIORITY_TONES.get((priority or "").strip().lower(), "success")


def trend_symbol(trend: Optional[str]) -> str:
    return _TREND_SYMBOLS.get((trend or "").strip().lower(), "→")


def has_data(snapshot: DashboardSnapshot) -> bool:
    """True once any metrics or non-empty record list has been received."""
    return bool(
        snapshot.metrics is not None
        or snapshot.low_stock_alerts
        or snapshot.inventory_items
        or snapshot.sales_data
        or snapshot.orders
    )
