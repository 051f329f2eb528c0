"""Domain service: Stock Ledger.

The ledger is the only writer of ``available``, ``reserved`` and
``committed``.  Every mutation is a read / compute / compare-and-set cycle
on a single StockRecord, retried when another writer got there first.  This
gives linearizable updates per (tenant, product, warehouse) key without any
lock held by the engine, while unrelated keys proceed fully in parallel.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from invres.domain.exceptions import (
    DomainException,
    Inconsistent,
    LedgerUnavailable,
    ValidationError,
)
from invres.domain.model.movement import MovementLogEntry, MovementReason
from invres.domain.model.stock import StockRecord
from invres.domain.model.value_objects import StockKey
from invres.domain.repository.movement_repository import MovementRepository
from invres.domain.repository.stock_repository import StockRepository
from invres.domain.service.store_guard import store_guard

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 25


@dataclass(frozen=True)
class StockSnapshot:
    available: int
    reserved: int


class StockLedger:

    def __init__(
        self,
        stock_repo: StockRepository,
        movement_repo: MovementRepository,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        default_minimum: int = 0,
    ) -> None:
        self._stock_repo = stock_repo
        self._movement_repo = movement_repo
        self._max_attempts = max_attempts
        self._default_minimum = default_minimum

    # --- Commands -------------------------------------------------------------

    def adjust(
        self,
        tenant_id: str,
        product_id: str,
        warehouse_id: str,
        delta: int,
        reason: MovementReason,
        order_id: int | None = None,
    ) -> int:
        """Atomically add ``delta`` to ``available`` and return the new value.

        For ``RESERVE`` the removed quantity moves into ``reserved``; for
        ``RELEASE`` the returned quantity moves out of it.  Raises
        InsufficientStock (state unchanged) if ``available`` would go
        negative.
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError(f"Stock delta must be an integer, got {delta!r}")
        if reason == MovementReason.COMMIT:
            raise ValidationError("Use commit() to consume reserved stock")
        if reason == MovementReason.RESERVE and delta >= 0:
            raise ValidationError("A reservation must decrease available stock")
        if reason == MovementReason.RELEASE and delta <= 0:
            raise ValidationError("A release must increase available stock")

        reserved_delta = 0
        if reason in (MovementReason.RESERVE, MovementReason.RELEASE):
            reserved_delta = -delta

        key = StockKey(tenant_id, product_id, warehouse_id)
        record = self._mutate(
            key, lambda current: current.with_available_delta(delta, reserved_delta)
        )
        self._log_movement(
            MovementLogEntry(
                key=key,
                delta=delta,
                reason=reason,
                order_id=order_id,
                reserved_delta=reserved_delta,
            ),
            undo=lambda current: current.with_available_delta(-delta, -reserved_delta),
        )
        logger.info(
            "stock_adjusted",
            key=str(key),
            delta=delta,
            reason=reason.value,
            order_id=order_id,
            available=record.available,
            reserved=record.reserved,
        )
        return record.available

    def commit(
        self,
        tenant_id: str,
        product_id: str,
        warehouse_id: str,
        quantity: int,
        order_id: int | None = None,
    ) -> StockRecord:
        """Reclassify reserved stock as consumed.  ``available`` is untouched."""
        key = StockKey(tenant_id, product_id, warehouse_id)
        record = self._mutate(key, lambda current: current.with_commit(quantity))
        self._log_movement(
            MovementLogEntry(
                key=key,
                delta=0,
                reason=MovementReason.COMMIT,
                order_id=order_id,
                reserved_delta=-quantity,
                committed_delta=quantity,
            )
        )
        logger.info(
            "stock_committed",
            key=str(key),
            quantity=quantity,
            order_id=order_id,
            reserved=record.reserved,
            committed=record.committed,
        )
        return record

    def set_available(self, tenant_id: str, product_id: str, warehouse_id: str, target: int) -> int:
        """Set ``available`` to a counted figure and return the delta applied.

        The delta is taken from the record inside the compare-and-set cycle,
        so a reservation that lands between the count and the write is kept
        in ``reserved`` and the free pool still ends at ``target``.
        """
        if isinstance(target, bool) or not isinstance(target, int) or target < 0:
            raise ValidationError("Available stock must be a non-negative integer")
        key = StockKey(tenant_id, product_id, warehouse_id)
        applied = 0

        def _to_target(current: StockRecord) -> StockRecord:
            nonlocal applied
            applied = target - current.available
            return current.with_available_delta(applied)

        record = self._mutate(key, _to_target)
        if applied == 0:
            return 0
        delta = applied
        self._log_movement(
            MovementLogEntry(key=key, delta=delta, reason=MovementReason.ADJUSTMENT),
            undo=lambda current: current.with_available_delta(-delta),
        )
        logger.info(
            "stock_adjusted",
            key=str(key),
            delta=delta,
            reason=MovementReason.ADJUSTMENT.value,
            order_id=None,
            available=record.available,
            reserved=record.reserved,
        )
        return delta

    def set_minimum(self, tenant_id: str, product_id: str, warehouse_id: str, minimum: int) -> None:
        """Change the low-stock threshold of a record (created if missing)."""
        if minimum < 0:
            raise ValidationError("Minimum threshold cannot be negative")
        key = StockKey(tenant_id, product_id, warehouse_id)

        def _with_minimum(current: StockRecord) -> StockRecord:
            current.minimum = minimum
            return current

        self._mutate(key, _with_minimum)

    # --- Queries --------------------------------------------------------------

    def get_available(self, tenant_id: str, product_id: str, warehouse_id: str) -> StockSnapshot:
        """Read-only snapshot.  An untouched key reads as zeros."""
        record = self.get_record(tenant_id, product_id, warehouse_id)
        if record is None:
            return StockSnapshot(available=0, reserved=0)
        return StockSnapshot(available=record.available, reserved=record.reserved)

    def get_record(self, tenant_id: str, product_id: str, warehouse_id: str) -> StockRecord | None:
        key = StockKey(tenant_id, product_id, warehouse_id)
        with store_guard("read stock"):
            return self._stock_repo.get(key)

    # --- Internal helpers -----------------------------------------------------

    def _mutate(self, key: StockKey, compute: Callable[[StockRecord], StockRecord]) -> StockRecord:
        """Optimistic read-compute-CAS loop on one key.

        Domain errors raised by ``compute`` propagate immediately and leave
        the stored record untouched.  The record is created lazily: an
        absent key is treated as all-zero with ``expected_version=None``.
        """
        for attempt in range(1, self._max_attempts + 1):
            with store_guard("read stock"):
                current = self._stock_repo.get(key)
            expected: int | None
            if current is None:
                current = StockRecord(key=key, minimum=self._default_minimum)
                expected = None
            else:
                expected = current.version

            updated = compute(current)

            with store_guard("write stock"):
                if self._stock_repo.compare_and_set(updated, expected):
                    return updated
            logger.debug("stock_adjust_conflict", key=str(key), attempt=attempt)

        raise LedgerUnavailable(
            f"Could not update {key} after {self._max_attempts} attempts (too much contention)"
        )

    def _log_movement(
        self,
        entry: MovementLogEntry,
        undo: Callable[[StockRecord], StockRecord] | None = None,
    ) -> None:
        """Append ``entry``; if the log refuses it, take the counter change back.

        The counters are already stored when this runs.  With ``undo`` the
        change is reverted and the append failure is re-raised as
        LedgerUnavailable.  Without it, or when the revert fails too, the
        key is reported Inconsistent.
        """
        try:
            with store_guard("append to the movement log"):
                self._movement_repo.append(entry)
            return
        except LedgerUnavailable as exc:
            logger.error(
                "movement_log_append_failed",
                key=str(entry.key),
                delta=entry.delta,
                reason=entry.reason.value,
                order_id=entry.order_id,
                error=str(exc),
            )
            append_error = exc

        if undo is not None:
            try:
                self._mutate(entry.key, undo)
            except DomainException as exc:
                logger.error("movement_undo_failed", key=str(entry.key), error=str(exc))
            else:
                raise append_error
        raise Inconsistent(
            entry.order_id,
            f"{entry.key} changed by {entry.reason.value} "
            f"(available {entry.delta:+d}, reserved {entry.reserved_delta:+d}) "
            f"but the movement log has no entry for it: {append_error}",
        ) from append_error
