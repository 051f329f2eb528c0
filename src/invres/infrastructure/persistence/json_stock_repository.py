"""JSON-file-backed implementation of StockRepository."""

from __future__ import annotations

from pathlib import Path

from invres.domain.model.stock import StockRecord
from invres.domain.model.value_objects import StockKey
from invres.domain.repository.stock_repository import StockRepository
from invres.infrastructure.persistence.json_file import JsonFile


class JsonStockRepository(StockRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- StockRepository interface --------------------------------------------

    def get(self, key: StockKey) -> StockRecord | None:
        for raw in self._file.load():
            if self._matches(raw, key):
                return self._to_domain(raw)
        return None

    def compare_and_set(self, record: StockRecord, expected_version: int | None) -> bool:
        with self._file.lock:
            records = self._file.load()
            for i, raw in enumerate(records):
                if self._matches(raw, record.key):
                    if raw["version"] != expected_version:
                        return False
                    record.version = raw["version"] + 1
                    records[i] = self._to_raw(record)
                    break
            else:
                if expected_version is not None:
                    return False
                record.version = 1
                records.append(self._to_raw(record))
            self._file.persist(records)
            return True

    def list_for_tenant(self, tenant_id: str) -> list[StockRecord]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["tenant_id"] == tenant_id
        ]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _matches(raw: dict, key: StockKey) -> bool:
        return (
            raw["tenant_id"] == key.tenant_id
            and raw["product_id"] == key.product_id
            and raw["warehouse_id"] == key.warehouse_id
        )

    @staticmethod
    def _to_raw(record: StockRecord) -> dict:
        return {
            "tenant_id": record.key.tenant_id,
            "product_id": record.key.product_id,
            "warehouse_id": record.key.warehouse_id,
            "available": record.available,
            "reserved": record.reserved,
            "committed": record.committed,
            "minimum": record.minimum,
            "version": record.version,
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockRecord:
        return StockRecord(
            key=StockKey(raw["tenant_id"], raw["product_id"], raw["warehouse_id"]),
            available=raw["available"],
            reserved=raw.get("reserved", 0),
            committed=raw.get("committed", 0),
            minimum=raw.get("minimum", 0),
            version=raw["version"],
        )
