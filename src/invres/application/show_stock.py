"""Application service: stock and movement queries (read-only)."""

from __future__ import annotations

from invres.application.dto import MovementDTO, StockLineDTO
from invres.domain.model.value_objects import require_tenant
from invres.domain.repository.movement_repository import MovementRepository
from invres.domain.repository.stock_repository import StockRepository
from invres.domain.service.store_guard import store_guard


class ShowStockHandler:

    def __init__(self, stock_repo: StockRepository) -> None:
        self._stock_repo = stock_repo

    def handle(self, tenant_id: str, warehouse_id: str | None = None) -> list[StockLineDTO]:
        tenant_id = require_tenant(tenant_id)
        with store_guard("read stock"):
            records = self._stock_repo.list_for_tenant(tenant_id)
        if warehouse_id is not None:
            records = [r for r in records if r.key.warehouse_id == warehouse_id]
        return [StockLineDTO.from_record(r) for r in sorted(records, key=lambda r: r.key)]


class ShowMovementsHandler:

    def __init__(self, movement_repo: MovementRepository) -> None:
        self._movement_repo = movement_repo

    def handle(
        self,
        tenant_id: str,
        product_id: str | None = None,
        order_id: int | None = None,
    ) -> list[MovementDTO]:
        tenant_id = require_tenant(tenant_id)
        with store_guard("read the movement log"):
            entries = self._movement_repo.list_for_tenant(tenant_id, order_id=order_id)
        if product_id is not None:
            entries = [e for e in entries if e.key.product_id == product_id]
        return [
            MovementDTO(
                product_id=e.key.product_id,
                warehouse_id=e.key.warehouse_id,
                delta=e.delta,
                reserved_delta=e.reserved_delta,
                committed_delta=e.committed_delta,
                reason=e.reason.value,
                order_id=e.order_id,
                timestamp=e.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"),
            )
            for e in entries
        ]
