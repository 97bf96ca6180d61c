"""Custom metrics for the storefront service."""

from opentelemetry import metrics

meter = metrics.get_meter("zequi-storefront")

orders_created_counter = meter.create_counter(
    name="orders_created_total",
    description="Total number of orders submitted by customers",
    unit="1",
)

order_value_histogram = meter.create_histogram(
    name="order_value_cents",
    description="Order totals in cents",
    unit="1",
)

order_size_histogram = meter.create_histogram(
    name="order_item_count",
    description="Units per order",
    unit="1",
)

order_transition_counter = meter.create_counter(
    name="order_status_transitions_total",
    description="Order status changes by target status",
    unit="1",
)

image_compression_histogram = meter.create_histogram(
    name="image_compression_attempts",
    description="Number of (width, quality) attempts needed to compress an upload",
    unit="1",
)

subscription_gauge = meter.create_up_down_counter(
    name="live_subscriptions",
    description="Current number of live subscriptions by topic",
    unit="1",
)


def record_order_created(total_cents: int, item_count: int) -> None:
    """Record a submitted order.

    Args:
        total_cents: Order total in cents
        item_count: Number of units in the order
    """
    orders_created_counter.add(1)
    order_value_histogram.record(total_cents)
    order_size_histogram.record(item_count)


def record_status_transition(status: str) -> None:
    """Record an order moving to ``status``."""
    order_transition_counter.add(1, {"status": status})


def record_image_compression(attempts: int, within_limit: bool) -> None:
    """Record how much work an image compression took.

    Args:
        attempts: Attempts made before a result was accepted
        within_limit: Whether the accepted result met the size threshold
    """
    image_compression_histogram.record(attempts, {"within_limit": within_limit})


def record_subscription_change(topic: str, change: int) -> None:
    """Record a subscription being opened (+1) or disposed (-1)."""
    subscription_gauge.add(change, {"topic": topic})
