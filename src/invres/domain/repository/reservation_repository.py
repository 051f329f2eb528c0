"""Abstract repository for Reservation records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from invres.domain.model.reservation import Reservation
from invres.domain.model.value_objects import StockKey


class ReservationRepository(ABC):

    @abstractmethod
    def get(self, order_id: int, key: StockKey) -> Reservation | None:
        """Return the reservation of an order line in any state, or None."""

    @abstractmethod
    def list_for_order(self, tenant_id: str, order_id: int) -> list[Reservation]:
        """Return every reservation an order holds within a tenant."""

    @abstractmethod
    def list_active(self, tenant_id: str) -> list[Reservation]:
        """Return all active reservations of a tenant."""

    @abstractmethod
    def save(self, reservation: Reservation) -> None:
        """Persist a new or updated reservation."""
