from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total",
    "Total checkouts processed",
    ["status"] # Labels: 'success', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds",
    "Checkout duration in seconds"
)

ecomm_saga_compensation_total = Counter(
    "ecomm_saga_compensation_total",
    "Total saga compensations triggered",
    ["step_name"] # Labels: 'create_order', 'reserve_stock', etc.
)

ecomm_order_cancellations_total = Counter(
    "ecomm_order_cancellations_total",
    "Total orders cancelled",
    ["actor"] # Labels: 'owner', 'admin'
)

ecomm_stock_released_units_total = Counter(
    "ecomm_stock_released_units_total",
    "Units of stock returned to inventory"
)
