"""Application service: Reconcile Stock use case."""

from __future__ import annotations

from invres.application.dto import DriftDTO
from invres.domain.service.reconciliation import ReconciliationService


class ReconcileStockHandler:

    def __init__(self, service: ReconciliationService) -> None:
        self._service = service

    def handle(self, tenant_id: str) -> list[DriftDTO]:
        return [
            DriftDTO(
                product_id=d.key.product_id,
                warehouse_id=d.key.warehouse_id,
                ledger_reserved=d.ledger_reserved,
                expected_reserved=d.expected_reserved,
            )
            for d in self._service.sweep(tenant_id)
        ]
