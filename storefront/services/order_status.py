"""
Order and payment status graphs.

Pure functions only: the order service consults them before writing a new
status, and the admin API exposes ``all_next_states`` so the UI can offer
only legal choices. Fulfilment moves strictly one step at a time along
``ORDER_STATUS_CHAIN``; ``cancelled`` is reachable from any state that is
not terminal.
"""
import enum
from typing import FrozenSet, Union


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PRODUCTION = "in_production"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


ORDER_STATUS_CHAIN = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.IN_PRODUCTION,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
)
TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}

StatusLike = Union[str, OrderStatus]


def parse_status(value: StatusLike) -> OrderStatus:
    """Raise ValueError for anything that is not an order status."""
    return OrderStatus(value)


def parse_payment_status(value: Union[str, PaymentStatus]) -> PaymentStatus:
    return PaymentStatus(value)


def all_next_states(current: StatusLike) -> FrozenSet[OrderStatus]:
    try:
        status = parse_status(current)
    except ValueError:
        return frozenset()
    if status in TERMINAL_STATUSES:
        return frozenset()
    successor = ORDER_STATUS_CHAIN[ORDER_STATUS_CHAIN.index(status) + 1]
    return frozenset({successor, OrderStatus.CANCELLED})


def can_transition(current: StatusLike, next_status: StatusLike) -> bool:
    try:
        target = parse_status(next_status)
    except ValueError:
        return False
    return target in all_next_states(current)


def progress_position(status: StatusLike) -> int:
    """Index along the fulfilment chain; -1 for cancelled orders."""
    status = parse_status(status)
    if status is OrderStatus.CANCELLED:
        return -1
    return ORDER_STATUS_CHAIN.index(status)


def all_next_payment_states(current) -> FrozenSet[PaymentStatus]:
    try:
        return PAYMENT_TRANSITIONS[parse_payment_status(current)]
    except ValueError:
        return frozenset()


def can_transition_payment(current, next_status) -> bool:
    try:
        target = parse_payment_status(next_status)
    except ValueError:
        return False
    return target in all_next_payment_states(current)
