"""Application service: Availability Query (read-only).

Answers "could these items be reserved right now?" before an order is
submitted.  When the check is for an edit of an existing order, that
order's own active reservations are added back, so growing a line from 2 to
8 is compared against everything the order could hold, not against what is
left after its current hold.

The answer is a snapshot: a later reserve can still fail.
"""

from __future__ import annotations

from invres.application.dto import AvailabilityLine, ItemRequest
from invres.domain.exceptions import ValidationError
from invres.domain.model.value_objects import require_tenant
from invres.domain.repository.reservation_repository import ReservationRepository
from invres.domain.service.stock_ledger import StockLedger
from invres.domain.service.store_guard import store_guard


class AvailabilityQueryService:

    def __init__(self, ledger: StockLedger, reservation_repo: ReservationRepository) -> None:
        self._ledger = ledger
        self._reservation_repo = reservation_repo

    def check_availability(
        self,
        tenant_id: str,
        items: list[ItemRequest],
        warehouse_id: str,
        order_id: int | None = None,
    ) -> list[AvailabilityLine]:
        tenant_id = require_tenant(tenant_id)
        if not items:
            raise ValidationError("At least one item is required")

        requested: dict[str, int] = {}
        for item in items:
            if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
                raise ValidationError(
                    f"Quantity for product '{item.product_id}' must be at least 1"
                )
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        held = self._held_by_order(tenant_id, order_id, warehouse_id) if order_id is not None else {}

        result: list[AvailabilityLine] = []
        for product_id, quantity in requested.items():
            record = self._ledger.get_record(tenant_id, product_id, warehouse_id)
            if record is None:
                result.append(
                    AvailabilityLine(
                        product_id=product_id,
                        requested_qty=quantity,
                        available=0,
                        sufficient=False,
                        status="not_found",
                    )
                )
                continue

            reserved_by_order = held.get(product_id, 0)
            adjusted = record.available + reserved_by_order
            sufficient = adjusted >= quantity
            result.append(
                AvailabilityLine(
                    product_id=product_id,
                    requested_qty=quantity,
                    available=adjusted,
                    sufficient=sufficient,
                    reserved_by_order=reserved_by_order,
                    status="available" if sufficient else "insufficient",
                )
            )
        return result

    def _held_by_order(self, tenant_id: str, order_id: int, warehouse_id: str) -> dict[str, int]:
        with store_guard("read reservations"):
            reservations = self._reservation_repo.list_for_order(tenant_id, order_id)
        held: dict[str, int] = {}
        for r in reservations:
            if r.is_active and r.key.warehouse_id == warehouse_id:
                held[r.key.product_id] = held.get(r.key.product_id, 0) + r.quantity
        return held


def all_available(lines: list[AvailabilityLine]) -> bool:
    return all(line.sufficient for line in lines)
