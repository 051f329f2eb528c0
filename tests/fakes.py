"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the JSON repositories
but keep everything in a dict. No file I/O, no side effects.

Each fake hands out deep copies, like a real store would, so a test can
never mutate stored state by accident.  A few switches make a fake fail
on demand to exercise rollback and quarantine paths.
"""

from __future__ import annotations

import copy
import threading

from invres.domain.model.movement import MovementLogEntry
from invres.domain.model.order import Order
from invres.domain.model.reservation import Reservation
from invres.domain.model.stock import StockRecord
from invres.domain.model.value_objects import StockKey
from invres.domain.repository.movement_repository import MovementRepository
from invres.domain.repository.order_repository import OrderRepository
from invres.domain.repository.reservation_repository import ReservationRepository
from invres.domain.repository.stock_repository import StockRepository


class FakeStockRepository(StockRepository):
    """Thread-safe compare-and-set over a dict.

    ``conflicts`` makes the next N compare-and-set calls lose the race.
    ``fail_after_writes`` makes every write after the first N raise OSError;
    with ``fail_once`` only the next such write fails and the store recovers.
    """

    def __init__(self, records: list[StockRecord] | None = None) -> None:
        self._store: dict[StockKey, StockRecord] = {}
        self._lock = threading.Lock()
        self.conflicts = 0
        self.fail_after_writes: int | None = None
        self.fail_once = False
        self.writes = 0
        for record in records or []:
            self.put(record)

    def put(self, record: StockRecord) -> None:
        """Seed a record directly, bypassing the failure switches."""
        stored = copy.deepcopy(record)
        stored.version = max(stored.version, 1)
        self._store[stored.key] = stored

    def get(self, key: StockKey) -> StockRecord | None:
        with self._lock:
            return copy.deepcopy(self._store.get(key))

    def compare_and_set(self, record: StockRecord, expected_version: int | None) -> bool:
        with self._lock:
            if self.fail_after_writes is not None and self.writes >= self.fail_after_writes:
                if self.fail_once:
                    self.fail_after_writes = None
                raise OSError("stock store is down")
            if self.conflicts > 0:
                self.conflicts -= 1
                return False
            stored = self._store.get(record.key)
            current_version = stored.version if stored is not None else None
            if current_version != expected_version:
                return False
            record.version = 1 if expected_version is None else expected_version + 1
            self._store[record.key] = copy.deepcopy(record)
            self.writes += 1
            return True

    def list_for_tenant(self, tenant_id: str) -> list[StockRecord]:
        with self._lock:
            return [copy.deepcopy(r) for k, r in self._store.items() if k.tenant_id == tenant_id]


class FakeReservationRepository(ReservationRepository):

    def __init__(self) -> None:
        self._store: dict[tuple[int, StockKey], Reservation] = {}
        self.fail_saves = False

    def get(self, order_id: int, key: StockKey) -> Reservation | None:
        return copy.deepcopy(self._store.get((order_id, key)))

    def list_for_order(self, tenant_id: str, order_id: int) -> list[Reservation]:
        return [
            copy.deepcopy(r)
            for (oid, key), r in self._store.items()
            if oid == order_id and key.tenant_id == tenant_id
        ]

    def list_active(self, tenant_id: str) -> list[Reservation]:
        return [
            copy.deepcopy(r)
            for (_, key), r in self._store.items()
            if key.tenant_id == tenant_id and r.is_active
        ]

    def save(self, reservation: Reservation) -> None:
        if self.fail_saves:
            raise OSError("reservation store is down")
        self._store[(reservation.order_id, reservation.key)] = copy.deepcopy(reservation)


class FakeMovementRepository(MovementRepository):

    def __init__(self) -> None:
        self.entries: list[MovementLogEntry] = []
        self.fail_appends = False

    def append(self, entry: MovementLogEntry) -> None:
        if self.fail_appends:
            raise OSError("movement log is down")
        self.entries.append(entry)

    def list_for_key(self, key: StockKey) -> list[MovementLogEntry]:
        return [e for e in self.entries if e.key == key]

    def list_for_tenant(
        self, tenant_id: str, order_id: int | None = None
    ) -> list[MovementLogEntry]:
        return [
            e for e in self.entries
            if e.key.tenant_id == tenant_id and (order_id is None or e.order_id == order_id)
        ]


class FakeOrderRepository(OrderRepository):
    """``save_failures`` makes the next N saves fail; ``fail_saves`` fails all."""

    def __init__(self) -> None:
        self._store: dict[int, Order] = {}
        self._next_id = 1
        self.fail_saves = False
        self.save_failures = 0
        self.fail_deletes = False

    def next_id(self) -> int:
        order_id = self._next_id
        self._next_id += 1
        return order_id

    def get_by_id(self, tenant_id: str, order_id: int) -> Order | None:
        order = self._store.get(order_id)
        if order is None or order.tenant_id != tenant_id:
            return None
        return copy.deepcopy(order)

    def save(self, order: Order) -> None:
        if self.save_failures > 0:
            self.save_failures -= 1
            raise OSError("order store is down")
        if self.fail_saves:
            raise OSError("order store is down")
        if order.id is None:
            order.id = self.next_id()
        self._store[order.id] = copy.deepcopy(order)

    def delete(self, tenant_id: str, order_id: int) -> None:
        if self.fail_deletes:
            raise OSError("order store is down")
        order = self._store.get(order_id)
        if order is not None and order.tenant_id == tenant_id:
            del self._store[order_id]

    def stored(self, order_id: int) -> Order | None:
        """Peek at the stored order without a tenant check."""
        return copy.deepcopy(self._store.get(order_id))
