"""Normalized dashboard snapshot extracted from agent replies."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Keys whose presence marks a decoded record as dashboard data.
RECOGNIZED_KEYS = ("message", "metrics", "lowStockAlerts", "inventoryItems")

LIST_FIELDS = ("low_stock_alerts", "inventory_items", "sales_data", "orders")


class DashboardSnapshot(BaseModel):
    """Partially populated dashboard state taken from one agent reply.

    List entries are carried through untouched; placeholders for missing
    sub-fields are applied at render time only.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )

    message: Optional[str] = None
    metrics: Optional[dict[str, Any]] = None
    low_stock_alerts: Optional[list[Any]] = Field(default=None, alias="lowStockAlerts")
    inventory_items: Optional[list[Any]] = Field(default=None, alias="inventoryItems")
    sales_data: Optional[list[Any]] = Field(default=None, alias="salesData")
    orders: Optional[list[Any]] = Field(default=None, alias="orders")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "DashboardSnapshot":
        """Build a snapshot from a decoded record, field by field.

        A recognised key holding the wrong container type is dropped on its
        own; the rest of the record is still accepted.
        """
        fields: dict[str, Any] = {}

        message = payload.get("message")
        if isinstance(message, str):
            fields["message"] = message
        elif message is not None:
            logger.debug("Ignoring non-text message of type %s", type(message).__name__)

        metrics = payload.get("metrics")
        if isinstance(metrics, dict):
            fields["metrics"] = metrics
        elif metrics is not None:
            logger.debug("Ignoring metrics of type %s", type(metrics).__name__)

        for name in LIST_FIELDS:
            alias = cls.model_fields[name].alias or name
            value = payload.get(alias)
            if isinstance(value, list):
                fields[name] = value
            elif value is not None:
                logger.debug("Ignoring %s of type %s", alias, type(value).__name__)

        return cls(**fields)

    def to_payload(self) -> dict[str, Any]:
        """Return the populated fields under their wire names."""
        return self.model_dump(by_alias=True, exclude_none=True)
