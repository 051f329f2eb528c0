"""Application service: manual stock movements.

Receipts, damage write-offs and stock-take corrections all go through the
ledger's ``adjust`` so they land in the movement log like any other change.
"""

from __future__ import annotations

from invres.application.dto import StockLineDTO
from invres.domain.exceptions import ValidationError
from invres.domain.model.movement import MovementReason
from invres.domain.model.stock import StockRecord
from invres.domain.model.value_objects import StockKey
from invres.domain.service.stock_ledger import StockLedger


class SetStockHandler:

    def __init__(self, ledger: StockLedger) -> None:
        self._ledger = ledger

    def receive(self, tenant_id: str, product_id: str, warehouse_id: str, quantity: int) -> StockLineDTO:
        """Book incoming goods into the available pool."""
        _require_positive(quantity, "Received quantity")
        self._ledger.adjust(tenant_id, product_id, warehouse_id, quantity, MovementReason.RECEIPT)
        return self._line(tenant_id, product_id, warehouse_id)

    def record_damage(self, tenant_id: str, product_id: str, warehouse_id: str, quantity: int) -> StockLineDTO:
        """Write off damaged units.  Reserved stock cannot be written off."""
        _require_positive(quantity, "Damaged quantity")
        self._ledger.adjust(tenant_id, product_id, warehouse_id, -quantity, MovementReason.DAMAGE)
        return self._line(tenant_id, product_id, warehouse_id)

    def set_level(self, tenant_id: str, product_id: str, warehouse_id: str, available: int) -> StockLineDTO:
        """Correct ``available`` to a counted figure.

        Reserved stock is left alone; the movement log records the delta
        that was actually applied.
        """
        if available < 0:
            raise ValidationError("Available stock cannot be negative")
        self._ledger.set_available(tenant_id, product_id, warehouse_id, available)
        return self._line(tenant_id, product_id, warehouse_id)

    def set_minimum(self, tenant_id: str, product_id: str, warehouse_id: str, minimum: int) -> StockLineDTO:
        self._ledger.set_minimum(tenant_id, product_id, warehouse_id, minimum)
        return self._line(tenant_id, product_id, warehouse_id)

    def _line(self, tenant_id: str, product_id: str, warehouse_id: str) -> StockLineDTO:
        record = self._ledger.get_record(tenant_id, product_id, warehouse_id)
        if record is None:
            record = StockRecord(key=StockKey(tenant_id, product_id, warehouse_id))
        return StockLineDTO.from_record(record)


def _require_positive(quantity: int, label: str) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(f"{label} must be a positive integer")
