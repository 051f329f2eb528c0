"""Domain service: Reservation Manager.

Pairs every ledger adjust with the matching Reservation record.  The
ledger call always goes first so that a failed check (InsufficientStock)
leaves no trace; the reservation write follows, and if that write fails the
ledger adjust is undone before the error surfaces.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from invres.domain.exceptions import (
    Inconsistent,
    LedgerUnavailable,
    NoActiveReservation,
    ValidationError,
)
from invres.domain.model.movement import MovementReason
from invres.domain.model.reservation import Reservation, ReservationState
from invres.domain.model.value_objects import StockKey
from invres.domain.repository.reservation_repository import ReservationRepository
from invres.domain.service.stock_ledger import StockLedger
from invres.domain.service.store_guard import store_guard

logger = structlog.get_logger(__name__)


class ReservationManager:

    def __init__(self, ledger: StockLedger, reservation_repo: ReservationRepository) -> None:
        self._ledger = ledger
        self._reservation_repo = reservation_repo

    def reserve(
        self,
        order_id: int,
        tenant_id: str,
        product_id: str,
        warehouse_id: str,
        quantity: int,
    ) -> Reservation:
        """Take ``quantity`` out of available stock for an order line.

        Grows the line's active reservation if there is one, otherwise
        opens a fresh one.  Raises InsufficientStock without touching any
        reservation when the ledger refuses.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Reservation quantity must be a positive integer")
        key = StockKey(tenant_id, product_id, warehouse_id)
        existing = self._load(order_id, key)
        if existing is not None and existing.state == ReservationState.COMMITTED:
            raise ValidationError(
                f"Reservation for order #{order_id} on {key} is already committed"
            )

        self._ledger.adjust(
            key.tenant_id, product_id, warehouse_id, -quantity,
            MovementReason.RESERVE, order_id=order_id,
        )

        if existing is None:
            reservation = Reservation(order_id=order_id, key=key, quantity=quantity)
        elif existing.is_active:
            reservation = existing
            reservation.grow(quantity)
        else:
            reservation = existing
            reservation.reopen(quantity)

        self._save_or_undo(
            reservation,
            undo=lambda: self._ledger.adjust(
                key.tenant_id, product_id, warehouse_id, quantity,
                MovementReason.RELEASE, order_id=order_id,
            ),
        )
        logger.info(
            "reservation_created",
            order_id=order_id,
            key=str(key),
            quantity=quantity,
            held=reservation.quantity,
        )
        return reservation

    def release(
        self,
        order_id: int,
        tenant_id: str,
        product_id: str,
        warehouse_id: str,
        quantity: int | None = None,
    ) -> int:
        """Return an order line's reserved stock to the available pool.

        A missing or inactive reservation makes this a no-op, so calling it
        twice is the same as calling it once.  ``quantity`` releases only
        part of the hold; omitted, the whole reservation is released.
        Returns the quantity actually released (0 for a no-op).
        """
        key = StockKey(tenant_id, product_id, warehouse_id)
        reservation = self._load(order_id, key)
        if reservation is None or not reservation.is_active:
            return 0

        amount = reservation.quantity if quantity is None else quantity
        if amount <= 0:
            raise ValidationError("Release quantity must be positive")
        if amount > reservation.quantity:
            raise ValidationError(
                f"Cannot release {amount} of {key}: "
                f"reservation only holds {reservation.quantity}"
            )

        self._ledger.adjust(
            key.tenant_id, product_id, warehouse_id, amount,
            MovementReason.RELEASE, order_id=order_id,
        )
        reservation.shrink(amount)
        self._save_or_undo(
            reservation,
            undo=lambda: self._ledger.adjust(
                key.tenant_id, product_id, warehouse_id, -amount,
                MovementReason.RESERVE, order_id=order_id,
            ),
        )
        logger.info(
            "reservation_released",
            order_id=order_id,
            key=str(key),
            quantity=amount,
            state=reservation.state.value,
        )
        return amount

    def commit(self, order_id: int, tenant_id: str, product_id: str, warehouse_id: str) -> None:
        """Mark an active reservation as consumed.

        Stock left ``available`` when it was reserved, so only ``reserved``
        and ``committed`` move here.
        """
        key = StockKey(tenant_id, product_id, warehouse_id)
        reservation = self._load(order_id, key)
        if reservation is None or not reservation.is_active:
            raise NoActiveReservation(order_id, product_id, warehouse_id)

        self._ledger.commit(
            key.tenant_id, product_id, warehouse_id, reservation.quantity, order_id=order_id
        )
        reservation.commit()
        # A commit cannot be undone through the ledger; a lost write here
        # leaves the counters ahead of the reservation record.
        try:
            with store_guard("save reservation"):
                self._reservation_repo.save(reservation)
        except LedgerUnavailable as exc:
            raise Inconsistent(
                order_id, f"stock for {key} was committed but the reservation was not updated"
            ) from exc
        logger.info(
            "reservation_committed",
            order_id=order_id,
            key=str(key),
            quantity=reservation.quantity,
        )

    def for_order(self, tenant_id: str, order_id: int) -> list[Reservation]:
        with store_guard("read reservations"):
            return self._reservation_repo.list_for_order(tenant_id, order_id)

    def active_for_order(self, tenant_id: str, order_id: int) -> list[Reservation]:
        return [r for r in self.for_order(tenant_id, order_id) if r.is_active]

    # --- Internal helpers -----------------------------------------------------

    def _load(self, order_id: int, key: StockKey) -> Reservation | None:
        with store_guard("read reservation"):
            return self._reservation_repo.get(order_id, key)

    def _save_or_undo(self, reservation: Reservation, undo: Callable[[], object]) -> None:
        try:
            with store_guard("save reservation"):
                self._reservation_repo.save(reservation)
        except LedgerUnavailable:
            try:
                undo()
            except Exception as undo_exc:
                logger.error(
                    "reservation_undo_failed",
                    order_id=reservation.order_id,
                    key=str(reservation.key),
                    error=str(undo_exc),
                )
                raise Inconsistent(
                    reservation.order_id,
                    f"ledger for {reservation.key} changed but the reservation was not saved",
                ) from undo_exc
            raise
