"""Reservation: a claim on available stock held by one order line."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from invres.domain.exceptions import ValidationError
from invres.domain.model.value_objects import StockKey


class ReservationState(Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    RELEASED = "released"


@dataclass
class Reservation:
    """At most one per (tenant, order, product, warehouse).

    Once ``released`` or ``committed`` a reservation is frozen; the only way
    back to ``active`` is a fresh reservation on the same line via
    ``reopen()``, which starts the quantity over.
    """

    order_id: int
    key: StockKey
    quantity: int
    state: ReservationState = ReservationState.ACTIVE
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.state == ReservationState.ACTIVE

    def grow(self, quantity: int) -> None:
        self._require_active()
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        self.quantity += quantity
        self._touch()

    def shrink(self, quantity: int) -> None:
        """Return part of the held quantity; shrinking to zero releases it."""
        self._require_active()
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        if quantity > self.quantity:
            raise ValidationError(
                f"Cannot release {quantity} of {self.key}: "
                f"reservation only holds {self.quantity}"
            )
        if quantity == self.quantity:
            self.state = ReservationState.RELEASED
        else:
            self.quantity -= quantity
        self._touch()

    def commit(self) -> None:
        self._require_active()
        self.state = ReservationState.COMMITTED
        self._touch()

    def reopen(self, quantity: int) -> None:
        if self.state == ReservationState.COMMITTED:
            raise ValidationError(
                f"Reservation for order #{self.order_id} on {self.key} is already committed"
            )
        if self.state == ReservationState.ACTIVE:
            raise ValidationError(
                f"Reservation for order #{self.order_id} on {self.key} is already active"
            )
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        self.state = ReservationState.ACTIVE
        self.quantity = quantity
        self._touch()

    def _require_active(self) -> None:
        if not self.is_active:
            raise ValidationError(
                f"Reservation for order #{self.order_id} on {self.key} "
                f"is {self.state.value} and can no longer change"
            )

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
