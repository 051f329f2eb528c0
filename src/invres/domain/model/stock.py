"""StockRecord aggregate: counters per (tenant, product, warehouse).

``available`` is the free pool that new reservations draw from,
``reserved`` is what active reservations hold, and ``committed`` is the
lifetime count of consumed stock (reporting only).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from invres.domain.exceptions import InsufficientStock, ValidationError
from invres.domain.model.value_objects import StockKey


class StockStatus(Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


@dataclass
class StockRecord:
    """Aggregate root for stock counters.

    Invariants:
    - ``available`` is always >= 0
    - ``reserved`` is always >= 0
    - ``committed`` never decreases

    ``version`` is the optimistic concurrency token; the repository bumps it
    on every successful compare-and-set.
    """

    key: StockKey
    available: int = 0
    reserved: int = 0
    committed: int = 0
    minimum: int = 0
    version: int = 0

    @property
    def stock_status(self) -> StockStatus:
        if self.available == 0:
            return StockStatus.OUT_OF_STOCK
        if self.available <= self.minimum:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    def with_available_delta(self, delta: int, reserved_delta: int = 0) -> StockRecord:
        """Return a copy with ``delta`` applied to ``available``.

        Raises InsufficientStock if ``available`` would go negative.
        """
        new_available = self.available + delta
        if new_available < 0:
            raise InsufficientStock(
                product_id=self.key.product_id,
                warehouse_id=self.key.warehouse_id,
                requested=-delta,
                available=self.available,
            )
        new_reserved = self.reserved + reserved_delta
        if new_reserved < 0:
            raise ValidationError(
                f"Cannot release {-reserved_delta} of {self.key}: "
                f"only {self.reserved} currently reserved"
            )
        return replace(self, available=new_available, reserved=new_reserved)

    def with_commit(self, quantity: int) -> StockRecord:
        """Return a copy that moves ``quantity`` from reserved to committed."""
        if quantity <= 0:
            raise ValidationError("Commit quantity must be positive")
        if quantity > self.reserved:
            raise ValidationError(
                f"Cannot commit {quantity} of {self.key}: "
                f"only {self.reserved} currently reserved"
            )
        return replace(
            self,
            reserved=self.reserved - quantity,
            committed=self.committed + quantity,
        )
