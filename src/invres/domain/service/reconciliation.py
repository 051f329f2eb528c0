"""Domain service: reservation reconciliation sweep.

Recomputes ``reserved`` for every stock key of a tenant from its active
reservations and reports keys where the ledger disagrees.  Drift is only
reported; correcting it is a manual decision.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from invres.domain.model.value_objects import StockKey, require_tenant
from invres.domain.repository.reservation_repository import ReservationRepository
from invres.domain.repository.stock_repository import StockRepository
from invres.domain.service.store_guard import store_guard

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockDrift:
    key: StockKey
    ledger_reserved: int
    expected_reserved: int

    @property
    def difference(self) -> int:
        return self.ledger_reserved - self.expected_reserved


class ReconciliationService:

    def __init__(self, stock_repo: StockRepository, reservation_repo: ReservationRepository) -> None:
        self._stock_repo = stock_repo
        self._reservation_repo = reservation_repo

    def sweep(self, tenant_id: str) -> list[StockDrift]:
        """Report drift for one tenant.  There is no sweep across tenants."""
        tenant_id = require_tenant(tenant_id)
        with store_guard("read stock for reconciliation"):
            records = self._stock_repo.list_for_tenant(tenant_id)
            reservations = self._reservation_repo.list_active(tenant_id)

        expected: dict[StockKey, int] = {}
        for reservation in reservations:
            expected[reservation.key] = expected.get(reservation.key, 0) + reservation.quantity

        ledger = {record.key: record.reserved for record in records}

        drifts: list[StockDrift] = []
        for key in sorted(ledger.keys() | expected.keys()):
            ledger_reserved = ledger.get(key, 0)
            expected_reserved = expected.get(key, 0)
            if ledger_reserved != expected_reserved:
                drifts.append(StockDrift(key, ledger_reserved, expected_reserved))
                logger.warning(
                    "stock_drift_detected",
                    key=str(key),
                    ledger_reserved=ledger_reserved,
                    expected_reserved=expected_reserved,
                )

        logger.info("reconciliation_finished", tenant_id=tenant_id, keys=len(ledger), drifts=len(drifts))
        return drifts
