"""Streamlit frontend for the inventory agent dashboard."""

from __future__ import annotations

from typing import Any, Optional

import pandas as pd
import streamlit as st

from agent.prompts import PAGE_PROMPTS, QUICK_PROMPTS
from app.config import get_dashboard_settings
from app.logging_utils import configure_logging
from app.services.dashboard_service import DashboardService, build_dashboard_service
from dashboard.store import DashboardStore
from dashboard.views import (
    InventoryRow,
    LowStockAlertRow,
    OrderRow,
    SalesRow,
    format_currency,
    has_data,
    metrics_view,
    priority_tone,
    sales_summary,
    status_tone,
    to_rows,
    trend_symbol,
)

st.set_page_config(page_title="Inventory Agent", page_icon="📦", layout="wide")

_PAGES = ["Dashboard", "Inventory", "Sales", "Orders"]

_TONE_MARKERS = {
    "success": "🟢",
    "warning": "🟡",
    "error": "🔴",
    "info": "🔵",
    "neutral": "⚪",
}


@st.cache_resource(show_spinner=False)
def _setup_logging() -> None:
    configure_logging(get_dashboard_settings().log_level)


def _get_service() -> DashboardService:
    """Return this browser session's dashboard service, creating it once."""
    if "dashboard_service" not in st.session_state:
        st.session_state.dashboard_service = build_dashboard_service()
    return st.session_state.dashboard_service


def _marked(text: str, tone: str) -> str:
    return f"{_TONE_MARKERS.get(tone, _TONE_MARKERS['neutral'])} {text}"


def _frame(rows: list[Any], columns: dict[str, str]) -> pd.DataFrame:
    records = [{label: getattr(row, name) for name, label in columns.items()} for row in rows]
    return pd.DataFrame(records, columns=list(columns.values()))


def _queue_prompt(prompt: str) -> None:
    st.session_state.pending_prompt = prompt
    st.session_state.next_page = "Dashboard"


# ── Session state defaults ─────────────────────────────────────────────────
_setup_logging()

if "page" not in st.session_state:
    st.session_state.page = "Dashboard"
if "pending_prompt" not in st.session_state:
    st.session_state.pending_prompt = None
if "initial_load_done" not in st.session_state:
    st.session_state.initial_load_done = False

# Page switches requested by buttons apply before the page radio is drawn.
if st.session_state.get("next_page"):
    st.session_state.page = st.session_state.next_page
    st.session_state.next_page = None

service = _get_service()
store: DashboardStore = service.store

if not st.session_state.initial_load_done:
    st.session_state.initial_load_done = True
    if get_dashboard_settings().load_on_start:
        with st.spinner("Loading dashboard from the inventory agent..."):
            service.load_dashboard()


# ── Sidebar ────────────────────────────────────────────────────────────────
with st.sidebar:
    st.title("Inventory Agent")
    st.caption("Stock, sales and purchase orders")
    st.divider()
    st.radio("Page", options=_PAGES, key="page")
    st.divider()
    if st.button(
        "Refresh dashboard",
        use_container_width=True,
        disabled=store.is_busy("load"),
    ):
        with st.spinner("Refreshing..."):
            service.load_dashboard()
    alerts = store.snapshot.low_stock_alerts or []
    if alerts:
        st.caption(f"🔔 {len(alerts)} low stock alert(s)")


# ── Banners ────────────────────────────────────────────────────────────────
if store.error:
    banner, action = st.columns([5, 1])
    banner.error(store.error)
    if store.last_failed_request is not None and action.button("Retry", use_container_width=True):
        with st.spinner("Retrying..."):
            service.retry()
        st.rerun()
if store.advisory:
    st.info(store.advisory)


# ── Page renderers ─────────────────────────────────────────────────────────
def _render_empty(page: str) -> None:
    st.info(f"No {page.lower()} data yet.")
    prompt = PAGE_PROMPTS.get(page)
    if prompt and st.button(f"Ask the agent for {page.lower()} data"):
        _queue_prompt(prompt)
        st.rerun()


def _render_metrics() -> None:
    metrics = metrics_view(store.snapshot)
    if metrics is None:
        st.info("Metrics will appear once the agent reports them.")
        return
    cols = st.columns(4)
    cols[0].metric("Total SKUs", f"{metrics.total_skus:,}")
    cols[1].metric("Low Stock", metrics.low_stock_count)
    cols[2].metric("Pending Orders", metrics.pending_orders)
    cols[3].metric("Top Seller", metrics.top_seller)


def _render_alerts() -> None:
    rows = to_rows(store.snapshot.low_stock_alerts, LowStockAlertRow)
    st.subheader("Low Stock Alerts")
    if not rows:
        st.caption("No low stock alerts.")
        return
    frame = _frame(
        rows,
        {
            "product": "Product",
            "current_stock": "Stock",
            "threshold": "Threshold",
            "status": "Status",
            "priority": "Priority",
            "recommended_order": "Reorder Qty",
        },
    )
    frame["Status"] = [_marked(row.status, status_tone(row.status)) for row in rows]
    frame["Priority"] = [_marked(row.priority, priority_tone(row.priority)) for row in rows]
    st.dataframe(frame, use_container_width=True, hide_index=True)


def _render_chat() -> None:
    st.subheader("Ask the Inventory Agent")
    messages = store.messages
    if not messages:
        st.caption("Try one of these:")
        cols = st.columns(len(QUICK_PROMPTS))
        for col, prompt in zip(cols, QUICK_PROMPTS):
            if col.button(prompt, use_container_width=True):
                _queue_prompt(prompt)
                st.rerun()

    for message in messages:
        with st.chat_message("user" if message.role == "user" else "assistant"):
            st.markdown(message.content)
            st.caption(message.timestamp.strftime("%H:%M"))

    typed = st.chat_input("Ask about stock, sales or orders", disabled=store.is_busy("chat"))
    prompt: Optional[str] = typed or st.session_state.pending_prompt
    if prompt:
        st.session_state.pending_prompt = None
        with st.spinner("Agent is thinking..."):
            service.send_chat(prompt)
        st.rerun()


def _render_dashboard() -> None:
    if store.snapshot.message:
        st.markdown(store.snapshot.message)
    _render_metrics()
    left, right = st.columns([3, 2])
    with left:
        _render_alerts()
    with right:
        _render_chat()


def _render_inventory() -> None:
    rows = to_rows(store.snapshot.inventory_items, InventoryRow)
    st.subheader("Inventory")
    if not rows:
        _render_empty("Inventory")
        return
    frame = _frame(
        rows,
        {
            "product": "Product",
            "sku": "SKU",
            "category": "Category",
            "current_stock": "Stock",
            "reorder_threshold": "Reorder At",
            "status": "Status",
            "last_restocked": "Last Restocked",
        },
    )
    frame["Status"] = [_marked(row.status, status_tone(row.status)) for row in rows]
    st.dataframe(frame, use_container_width=True, hide_index=True)


def _render_sales() -> None:
    rows = to_rows(store.snapshot.sales_data, SalesRow)
    st.subheader("Sales")
    if not rows:
        _render_empty("Sales")
        return

    summary = sales_summary(rows)
    cols = st.columns(3)
    cols[0].metric("Revenue", format_currency(summary.total_revenue))
    cols[1].metric("Units Sold", f"{summary.total_units:,}")
    cols[2].metric("Top Category", summary.top_category or "--")

    frame = _frame(
        rows,
        {
            "product": "Product",
            "category": "Category",
            "units_sold": "Units",
            "revenue": "Revenue",
            "trend": "Trend",
        },
    )
    frame["Revenue"] = [format_currency(row.revenue) for row in rows]
    frame["Trend"] = [f"{trend_symbol(row.trend)} {row.trend}" for row in rows]
    st.dataframe(frame, use_container_width=True, hide_index=True)

    st.markdown("**Revenue by category**")
    top = max(summary.revenue_by_category.values(), default=0.0) or 1.0
    for category, revenue in summary.revenue_by_category.items():
        st.progress(
            min(1.0, max(0.0, revenue / top)),
            text=f"{category}: {format_currency(revenue)}",
        )


def _render_orders() -> None:
    rows = to_rows(store.snapshot.orders, OrderRow)
    st.subheader("Purchase Orders")
    if not rows:
        _render_empty("Orders")
        return
    for row in rows:
        label = f"{row.order_id} · {row.supplier} · {_marked(row.status, status_tone(row.status))}"
        with st.expander(label):
            st.caption(f"Date: {row.date} · Items: {row.item_count}")
            if row.items:
                st.table(
                    pd.DataFrame(
                        [{"Item": line.name, "Quantity": line.quantity} for line in row.items]
                    )
                )
            else:
                st.caption("No line items reported.")


# ── Main content area ──────────────────────────────────────────────────────
page = st.session_state.page

if page != "Dashboard" and not has_data(store.snapshot) and store.is_busy("load"):
    st.info("Dashboard is loading...")
elif page == "Inventory":
    _render_inventory()
elif page == "Sales":
    _render_sales()
elif page == "Orders":
    _render_orders()
else:
    _render_dashboard()
