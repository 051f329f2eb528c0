"""Abstract repository for the append-only movement log."""

from __future__ import annotations

from abc import ABC, abstractmethod

from invres.domain.model.movement import MovementLogEntry
from invres.domain.model.value_objects import StockKey


class MovementRepository(ABC):

    @abstractmethod
    def append(self, entry: MovementLogEntry) -> None:
        """Append one entry.  Entries are never updated or removed."""

    @abstractmethod
    def list_for_key(self, key: StockKey) -> list[MovementLogEntry]:
        """Return the history of one stock key, oldest first."""

    @abstractmethod
    def list_for_tenant(
        self, tenant_id: str, order_id: int | None = None
    ) -> list[MovementLogEntry]:
        """Return a tenant's history, optionally narrowed to one order."""
