"""JSON-file-backed implementation of MovementRepository (append-only)."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from invres.domain.model.movement import MovementLogEntry, MovementReason
from invres.domain.model.value_objects import StockKey
from invres.domain.repository.movement_repository import MovementRepository
from invres.infrastructure.persistence.json_file import JsonFile


class JsonMovementRepository(MovementRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def append(self, entry: MovementLogEntry) -> None:
        with self._file.lock:
            records = self._file.load()
            records.append(self._to_raw(entry))
            self._file.persist(records)

    def list_for_key(self, key: StockKey) -> list[MovementLogEntry]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["tenant_id"] == key.tenant_id
            and raw["product_id"] == key.product_id
            and raw["warehouse_id"] == key.warehouse_id
        ]

    def list_for_tenant(
        self, tenant_id: str, order_id: int | None = None
    ) -> list[MovementLogEntry]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["tenant_id"] == tenant_id
            and (order_id is None or raw["order_id"] == order_id)
        ]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(entry: MovementLogEntry) -> dict:
        return {
            "tenant_id": entry.key.tenant_id,
            "product_id": entry.key.product_id,
            "warehouse_id": entry.key.warehouse_id,
            "delta": entry.delta,
            "reserved_delta": entry.reserved_delta,
            "committed_delta": entry.committed_delta,
            "reason": entry.reason.value,
            "order_id": entry.order_id,
            "timestamp": entry.timestamp.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> MovementLogEntry:
        return MovementLogEntry(
            key=StockKey(raw["tenant_id"], raw["product_id"], raw["warehouse_id"]),
            delta=raw["delta"],
            reason=MovementReason(raw["reason"]),
            order_id=raw.get("order_id"),
            reserved_delta=raw.get("reserved_delta", 0),
            committed_delta=raw.get("committed_delta", 0),
            timestamp=datetime.fromisoformat(raw["timestamp"]),
        )
