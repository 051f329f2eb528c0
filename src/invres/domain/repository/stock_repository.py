"""Abstract repository for StockRecord aggregate.

Defined in the domain layer so the domain never depends on
infrastructure.  The store only has to offer per-record atomicity:
``compare_and_set`` is the single write primitive the ledger relies on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from invres.domain.model.stock import StockRecord
from invres.domain.model.value_objects import StockKey


class StockRepository(ABC):

    @abstractmethod
    def get(self, key: StockKey) -> StockRecord | None:
        """Return a detached copy of the record for a key, or None."""

    @abstractmethod
    def compare_and_set(self, record: StockRecord, expected_version: int | None) -> bool:
        """Store ``record`` only if the stored version still matches.

        ``expected_version=None`` means "insert only if absent".  On success
        the stored version becomes ``expected_version + 1`` (or 1 for an
        insert), ``record.version`` is updated to match, and True is returned.
        """

    @abstractmethod
    def list_for_tenant(self, tenant_id: str) -> list[StockRecord]:
        """Return every record belonging to one tenant."""
