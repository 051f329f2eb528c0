"""JSON-file-backed implementation of ReservationRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from invres.domain.model.reservation import Reservation, ReservationState
from invres.domain.model.value_objects import StockKey
from invres.domain.repository.reservation_repository import ReservationRepository
from invres.infrastructure.persistence.json_file import JsonFile


class JsonReservationRepository(ReservationRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- ReservationRepository interface --------------------------------------

    def get(self, order_id: int, key: StockKey) -> Reservation | None:
        for raw in self._file.load():
            if raw["order_id"] == order_id and self._matches(raw, key):
                return self._to_domain(raw)
        return None

    def list_for_order(self, tenant_id: str, order_id: int) -> list[Reservation]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["tenant_id"] == tenant_id and raw["order_id"] == order_id
        ]

    def list_active(self, tenant_id: str) -> list[Reservation]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["tenant_id"] == tenant_id and raw["state"] == ReservationState.ACTIVE.value
        ]

    def save(self, reservation: Reservation) -> None:
        with self._file.lock:
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["order_id"] == reservation.order_id and self._matches(raw, reservation.key):
                    records[i] = self._to_raw(reservation)
                    break
            else:
                records.append(self._to_raw(reservation))
            self._file.persist(records)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _matches(raw: dict, key: StockKey) -> bool:
        return (
            raw["tenant_id"] == key.tenant_id
            and raw["product_id"] == key.product_id
            and raw["warehouse_id"] == key.warehouse_id
        )

    @staticmethod
    def _to_raw(reservation: Reservation) -> dict:
        return {
            "tenant_id": reservation.key.tenant_id,
            "order_id": reservation.order_id,
            "product_id": reservation.key.product_id,
            "warehouse_id": reservation.key.warehouse_id,
            "quantity": reservation.quantity,
            "state": reservation.state.value,
            "updated_at": reservation.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Reservation:
        return Reservation(
            order_id=raw["order_id"],
            key=StockKey(raw["tenant_id"], raw["product_id"], raw["warehouse_id"]),
            quantity=raw["quantity"],
            state=ReservationState(raw["state"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )
