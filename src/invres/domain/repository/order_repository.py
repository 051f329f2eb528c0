"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from invres.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, tenant_id: str, order_id: int) -> Order | None:
        """Return an order by its ID within a tenant, or None if not found."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order."""

    @abstractmethod
    def delete(self, tenant_id: str, order_id: int) -> None:
        """Remove an order.  Missing orders are ignored."""
