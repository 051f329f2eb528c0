"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from invres.domain.model.order import Order, OrderStatus, StatusChange
from invres.domain.model.value_objects import OrderLine, Quantity
from invres.domain.repository.order_repository import OrderRepository
from invres.infrastructure.persistence.json_file import JsonFile


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)
        self._sequence_path = self._file.path.with_name(self._file.path.name + ".seq")

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        # The last id handed out is kept beside the orders file, so two
        # creates in flight never share one, even from different processes.
        with self._file.lock:
            highest = max((o["id"] for o in self._file.load()), default=0)
            if self._sequence_path.exists():
                highest = max(highest, int(self._sequence_path.read_text(encoding="utf-8")))
            order_id = highest + 1
            self._sequence_path.write_text(str(order_id), encoding="utf-8")
            return order_id

    def get_by_id(self, tenant_id: str, order_id: int) -> Order | None:
        for raw in self._file.load():
            if raw["id"] == order_id and raw["tenant_id"] == tenant_id:
                return self._to_domain(raw)
        return None

    def save(self, order: Order) -> None:
        with self._file.lock:
            orders = self._file.load()

            if order.id is None:
                order.id = self.next_id()

            # Upsert: replace if exists, otherwise append
            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    orders[i] = self._to_raw(order)
                    break
            else:
                orders.append(self._to_raw(order))

            self._file.persist(orders)

    def delete(self, tenant_id: str, order_id: int) -> None:
        with self._file.lock:
            orders = self._file.load()
            kept = [
                o for o in orders
                if not (o["id"] == order_id and o["tenant_id"] == tenant_id)
            ]
            if len(kept) != len(orders):
                self._file.persist(kept)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "tenant_id": order.tenant_id,
            "status": order.status.value,
            "inconsistent": order.inconsistent,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "lines": [
                {
                    "product_id": line.product_id,
                    "warehouse_id": line.warehouse_id,
                    "quantity": line.quantity.value,
                }
                for line in order.lines
            ],
            "timeline": [
                {
                    "status": change.status.value,
                    "timestamp": change.timestamp.isoformat(),
                    "note": change.note,
                }
                for change in order.timeline
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        lines = [
            OrderLine(
                product_id=line["product_id"],
                warehouse_id=line["warehouse_id"],
                quantity=Quantity(line["quantity"]),
            )
            for line in raw["lines"]
        ]
        timeline = [
            StatusChange(
                status=OrderStatus(change["status"]),
                timestamp=datetime.fromisoformat(change["timestamp"]),
                note=change.get("note"),
            )
            for change in raw.get("timeline", [])
        ]
        return Order(
            id=raw["id"],
            tenant_id=raw["tenant_id"],
            lines=lines,
            status=OrderStatus(raw["status"]),
            inconsistent=raw.get("inconsistent", False),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw.get("updated_at", raw["created_at"])),
            timeline=timeline,
        )
