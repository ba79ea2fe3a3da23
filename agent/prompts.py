"""Prompt text sent to the inventory agent."""

DASHBOARD_SUMMARY_PROMPT = (
    "Provide a complete inventory dashboard summary with all metrics, "
    "top 10 low stock alerts by priority, a sample of inventory items across "
    "categories, estimated sales data, and any reorder recommendations."
)

INVENTORY_PROMPT = (
    "Show me the full inventory list with all products, SKUs, categories, "
    "stock levels, and status"
)

SALES_PROMPT = (
    "Show me sales analysis with top selling products, revenue, and trends by category"
)

ORDERS_PROMPT = "Show me all pending and recent orders with details"

QUICK_PROMPTS = (
    "Which items are out of stock?",
    "What should I reorder this week?",
    "Show gloves inventory",
)

# Page name -> prompt that fills that page when it has no data yet.
PAGE_PROMPTS = {
    "Inventory": INVENTORY_PROMPT,
    "Sales": SALES_PROMPT,
    "Orders": ORDERS_PROMPT,
}
