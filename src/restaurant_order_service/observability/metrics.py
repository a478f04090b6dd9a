"""Custom metrics for the order service."""

from opentelemetry import metrics

meter = metrics.get_meter("order-svc")

orders_created_counter = meter.create_counter(
    name="orders_created_total",
    description="Total number of orders created by order type",
    unit="1",
)

order_value_histogram = meter.create_histogram(
    name="order_total_value",
    description="Server-computed total of created orders",
    unit="BRL",
)

orders_rejected_counter = meter.create_counter(
    name="orders_rejected_total",
    description="Order submissions rejected by a precondition, by reason",
    unit="1",
)

rollback_counter = meter.create_counter(
    name="order_rollbacks_total",
    description="Compensating rollbacks after partial write failures, by outcome",
    unit="1",
)

status_transition_counter = meter.create_counter(
    name="order_status_transitions_total",
    description="Order status changes by source and target status",
    unit="1",
)


def record_order_created(order_type: str, total: float) -> None:
    """Record a successfully persisted order.

    Args:
        order_type: local, pickup or delivery
        total: Order total as charged
    """
    orders_created_counter.add(1, {"order_type": order_type})
    order_value_histogram.record(total, {"order_type": order_type})


def record_order_rejected(reason: str) -> None:
    orders_rejected_counter.add(1, {"reason": reason})


def record_rollback(operation: str, succeeded: bool) -> None:
    """Record a compensating action.

    Args:
        operation: "create" or "update"
        succeeded: Whether the store was left consistent
    """
    rollback_counter.add(
        1, {"operation": operation, "outcome": "succeeded" if succeeded else "failed"}
    )


def record_status_transition(from_status: str, to_status: str) -> None:
    status_transition_counter.add(1, {"from": from_status, "to": to_status})
