"""Order aggregate: the slice of an order the reservation engine needs.

The full order (customer, pricing, payment) belongs to the order CRUD
collaborator.  The engine only tracks the line snapshot, the status and
whether the order has been quarantined after a failed rollback.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from invres.domain.exceptions import Inconsistent, OrderLocked, ValidationError
from invres.domain.model.value_objects import OrderLine, require_tenant


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PACKED = "packed"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


# Stock has physically left once an order reaches any of these.
FULFILLED_STATUSES = frozenset({
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
})

TERMINAL_STATUSES = FULFILLED_STATUSES | {
    OrderStatus.CANCELLED,
    OrderStatus.RETURNED,
    OrderStatus.REFUNDED,
}

_CLOSED_STATUSES = TERMINAL_STATUSES - FULFILLED_STATUSES
_AFTER_FULFILLMENT = FULFILLED_STATUSES | {OrderStatus.RETURNED, OrderStatus.REFUNDED}

MAX_LINE_ITEMS = 50


@dataclass(frozen=True)
class StatusChange:
    status: OrderStatus
    timestamp: datetime
    note: str | None = None


@dataclass
class Order:
    """Aggregate root for an order's reservation-relevant state.

    Use ``Order.create()`` for new orders; ``__init__`` stays simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    tenant_id: str
    lines: list[OrderLine]
    status: OrderStatus = OrderStatus.PENDING
    inconsistent: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    timeline: list[StatusChange] = field(default_factory=list)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(tenant_id: str, lines: list[OrderLine]) -> Order:
        """Create a new pending order, enforcing all invariants."""
        tenant_id = require_tenant(tenant_id)
        validate_lines(lines)
        order = Order(id=None, tenant_id=tenant_id, lines=list(lines))
        order.timeline.append(
            StatusChange(OrderStatus.PENDING, order.created_at, "Order created")
        )
        return order

    # --- Guards ---------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_fulfilled(self) -> bool:
        return self.status in FULFILLED_STATUSES

    def ensure_automatable(self) -> None:
        """Quarantined orders accept no further automated mutation."""
        if self.inconsistent:
            raise Inconsistent(self.id, "order is quarantined after a failed rollback")

    def ensure_items_editable(self) -> None:
        self.ensure_automatable()
        if self.is_terminal:
            raise OrderLocked(self.id, self.status.value)  # type: ignore[arg-type]

    # --- Mutations ------------------------------------------------------------

    def replace_lines(self, lines: list[OrderLine]) -> None:
        self.ensure_items_editable()
        validate_lines(lines)
        self.lines = list(lines)
        self._touch()

    def ensure_can_transition(self, status: OrderStatus) -> None:
        """Cancelled, returned and refunded orders are closed for good; a
        fulfilled order may only move on to another fulfilled status or be
        returned/refunded.  Stock that was never shipped goes back through a
        cancel, not a return.
        """
        self.ensure_automatable()
        if self.status in _CLOSED_STATUSES:
            raise OrderLocked(self.id, self.status.value)  # type: ignore[arg-type]
        if self.is_fulfilled and status not in _AFTER_FULFILLMENT:
            raise OrderLocked(self.id, self.status.value)  # type: ignore[arg-type]
        if not self.is_fulfilled and status in _AFTER_FULFILLMENT - FULFILLED_STATUSES:
            raise ValidationError(
                f"Only fulfilled orders can be {status.value}; cancel order #{self.id} instead"
            )

    def change_status(self, status: OrderStatus, note: str | None = None) -> None:
        """Record a status transition (a repeat of the current status is a no-op)."""
        self.ensure_can_transition(status)
        if status == self.status:
            return
        self.status = status
        self._touch()
        self.timeline.append(
            StatusChange(status, self.updated_at, note or f"Status changed to {status.value}")
        )

    def mark_inconsistent(self) -> None:
        self.inconsistent = True
        self._touch()

    # --- Computed properties --------------------------------------------------

    def line_quantities(self) -> dict[tuple[str, str], int]:
        """Sum quantities per (product, warehouse)."""
        totals: dict[tuple[str, str], int] = {}
        for line in self.lines:
            totals[line.line_key] = totals.get(line.line_key, 0) + line.quantity.value
        return totals

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


def validate_lines(lines: list[OrderLine]) -> None:
    if not lines:
        raise ValidationError("Order must contain at least one item")
    if len(lines) > MAX_LINE_ITEMS:
        raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")
