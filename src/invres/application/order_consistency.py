"""Application service: Order Consistency Orchestrator.

Every order mutation that touches stock comes through here.  An item
change runs in four phases:

  1. classify: the request variant decides the path; terminal or
     quarantined orders are rejected before any stock moves
  2. release: give back what the new lines no longer need
  3. reserve: claim what the new lines need on top
  4. persist: save the new line snapshot only after 2 and 3 succeeded

A failure in 2, 3 or 4 replays the inverse of every operation already
applied, newest first.  If that replay fails too, the order is flagged
inconsistent and left for manual reconciliation.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum

import structlog

from invres.application.dto import (
    Cancel,
    CreateOrder,
    DeleteOrder,
    ItemUpdate,
    OrderDTO,
    OrderLineSpec,
    OrderRequest,
    StatusOnly,
)
from invres.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    Inconsistent,
    LedgerUnavailable,
    NoActiveReservation,
    OrderLocked,
    ValidationError,
)
from invres.domain.model.order import FULFILLED_STATUSES, Order, OrderStatus, validate_lines
from invres.domain.model.reservation import ReservationState
from invres.domain.model.value_objects import OrderLine, require_tenant
from invres.domain.repository.order_repository import OrderRepository
from invres.domain.service.order_differ import OrderDiff, diff
from invres.domain.service.reservation_manager import ReservationManager
from invres.domain.service.store_guard import store_guard

logger = structlog.get_logger(__name__)


class _Op(Enum):
    RESERVE = "reserve"
    RELEASE = "release"


@dataclass(frozen=True)
class _Applied:
    op: _Op
    product_id: str
    warehouse_id: str
    quantity: int


class OrderConsistencyOrchestrator:

    def __init__(
        self,
        order_repo: OrderRepository,
        reservations: ReservationManager,
    ) -> None:
        self._order_repo = order_repo
        self._reservations = reservations

    def handle(self, request: OrderRequest) -> OrderDTO | None:
        """Dispatch on the request variant.  Returns None for deletes."""
        if isinstance(request, CreateOrder):
            return self.create(request)
        if isinstance(request, ItemUpdate):
            return self.update_items(request)
        if isinstance(request, StatusOnly):
            return self.change_status(request)
        if isinstance(request, Cancel):
            return self.cancel(request)
        if isinstance(request, DeleteOrder):
            self.delete(request)
            return None
        raise ValidationError(f"Unsupported order request: {type(request).__name__}")

    # --- Variants -------------------------------------------------------------

    def create(self, request: CreateOrder) -> OrderDTO:
        lines = _to_lines(request.lines)
        order = Order.create(tenant_id=request.tenant_id, lines=lines)
        with store_guard("allocate an order id"):
            order.id = self._order_repo.next_id()

        applied = self._apply(order, diff([], lines))
        self._persist(order, applied)
        logger.info("order_created", order_id=order.id, tenant_id=order.tenant_id, lines=len(lines))
        return OrderDTO.from_order(order)

    def update_items(self, request: ItemUpdate) -> OrderDTO:
        order = self._load(request.tenant_id, request.order_id)
        order.ensure_items_editable()

        new_status = _parse_status(request.status) if request.status else None
        if new_status is not None:
            if new_status in FULFILLED_STATUSES or new_status == OrderStatus.CANCELLED:
                raise ValidationError(
                    f"Status '{new_status.value}' must be sent as a status-only request"
                )
            order.ensure_can_transition(new_status)

        new_lines = _to_lines(request.lines)
        validate_lines(new_lines)

        before = copy.deepcopy(order)
        delta = diff(order.lines, new_lines)
        if delta.is_empty:
            logger.info("order_items_unchanged", order_id=order.id)
            applied: list[_Applied] = []
        else:
            applied = self._apply(order, delta)

        order.replace_lines(new_lines)
        if new_status is not None:
            order.change_status(new_status)
        self._persist(order, applied, before)
        return OrderDTO.from_order(order)

    def change_status(self, request: StatusOnly) -> OrderDTO:
        new_status = _parse_status(request.status)
        if new_status == OrderStatus.CANCELLED:
            return self.cancel(Cancel(request.tenant_id, request.order_id, request.note))

        order = self._load(request.tenant_id, request.order_id)
        order.ensure_can_transition(new_status)

        if new_status in FULFILLED_STATUSES and not order.is_fulfilled:
            self._commit_all(order)

        order.change_status(new_status, request.note)
        # A failed save leaves the reservations committed; retrying the
        # same status change skips them and only saves the order.
        with store_guard("save order"):
            self._order_repo.save(order)
        return OrderDTO.from_order(order)

    def cancel(self, request: Cancel) -> OrderDTO:
        order = self._load(request.tenant_id, request.order_id)
        order.ensure_can_transition(OrderStatus.CANCELLED)

        before = copy.deepcopy(order)
        applied = self._release_all(order)
        order.change_status(OrderStatus.CANCELLED, request.note)
        self._persist(order, applied, before)
        logger.info("order_cancelled", order_id=order.id, released=len(applied))
        return OrderDTO.from_order(order)

    def delete(self, request: DeleteOrder) -> None:
        """Only pending orders can be deleted; their stock goes back first."""
        order = self._load(request.tenant_id, request.order_id)
        order.ensure_automatable()
        if order.status != OrderStatus.PENDING:
            raise OrderLocked(order.id, order.status.value)  # type: ignore[arg-type]

        applied = self._release_all(order)
        try:
            with store_guard("delete order"):
                self._order_repo.delete(order.tenant_id, order.id)  # type: ignore[arg-type]
        except LedgerUnavailable as exc:
            self._roll_back(order, applied, exc)
            raise
        logger.info("order_deleted", order_id=order.id, released=len(applied))

    # --- Protocol -------------------------------------------------------------

    def _apply(self, order: Order, delta: OrderDiff) -> list[_Applied]:
        """Release phase, then reserve phase, rolling back on any failure."""
        applied: list[_Applied] = []
        try:
            for entry in delta.to_release:
                released = self._reservations.release(
                    order.id, order.tenant_id, entry.product_id, entry.warehouse_id,  # type: ignore[arg-type]
                    entry.quantity,
                )
                if released:
                    applied.append(_Applied(_Op.RELEASE, entry.product_id, entry.warehouse_id, released))
        except DomainException as exc:
            # Nothing has been reserved yet; undo the releases and stop.
            self._roll_back(order, applied, exc)
            raise

        try:
            for entry in delta.to_reserve:
                self._reservations.reserve(
                    order.id, order.tenant_id, entry.product_id, entry.warehouse_id,  # type: ignore[arg-type]
                    entry.quantity,
                )
                applied.append(_Applied(_Op.RESERVE, entry.product_id, entry.warehouse_id, entry.quantity))
        except DomainException as exc:
            self._roll_back(order, applied, exc)
            raise

        return applied

    def _release_all(self, order: Order) -> list[_Applied]:
        applied: list[_Applied] = []
        try:
            for reservation in self._reservations.active_for_order(order.tenant_id, order.id):  # type: ignore[arg-type]
                released = self._reservations.release(
                    order.id, order.tenant_id,  # type: ignore[arg-type]
                    reservation.key.product_id, reservation.key.warehouse_id,
                )
                if released:
                    applied.append(_Applied(
                        _Op.RELEASE, reservation.key.product_id,
                        reservation.key.warehouse_id, released,
                    ))
        except DomainException as exc:
            self._roll_back(order, applied, exc)
            raise
        return applied

    def _commit_all(self, order: Order) -> None:
        """Commit every active reservation of the order.

        Every line must hold an active or already committed reservation;
        this is checked for all lines before the first commit so a
        sequencing mistake by the caller leaves the stock untouched.  Lines
        committed by an earlier attempt whose order save failed are skipped.
        """
        held = {
            (r.key.product_id, r.key.warehouse_id): r
            for r in self._reservations.for_order(order.tenant_id, order.id)  # type: ignore[arg-type]
            if r.state != ReservationState.RELEASED
        }
        for product_id, warehouse_id in sorted(order.line_quantities()):
            if (product_id, warehouse_id) not in held:
                raise NoActiveReservation(order.id, product_id, warehouse_id)  # type: ignore[arg-type]

        active = {line: r for line, r in held.items() if r.is_active}
        if len(active) < len(held):
            logger.info(
                "order_commit_resumed",
                order_id=order.id,
                already_committed=len(held) - len(active),
            )

        committed = 0
        for product_id, warehouse_id in sorted(active):
            try:
                self._reservations.commit(order.id, order.tenant_id, product_id, warehouse_id)  # type: ignore[arg-type]
            except DomainException as exc:
                if committed == 0 and not isinstance(exc, Inconsistent):
                    raise
                self._quarantine(order, exc)
                raise Inconsistent(
                    order.id, f"commit stopped after {committed} of {len(active)} lines: {exc}"
                ) from exc
            committed += 1

    def _persist(self, order: Order, applied: list[_Applied], before: Order | None = None) -> None:
        """Save ``order``; on failure undo ``applied``.

        ``before`` is the last saved state of the order; a quarantine flags
        that state and never stores lines that were not accepted.
        """
        try:
            with store_guard("save order"):
                self._order_repo.save(order)
        except LedgerUnavailable as exc:
            self._roll_back(before or order, applied, exc)
            raise

    def _roll_back(self, order: Order, applied: list[_Applied], cause: DomainException) -> None:
        """Replay the inverse of ``applied``, newest first.

        Raises Inconsistent (after quarantining the order) if any inverse
        operation fails; otherwise returns so the caller can re-raise the
        original error.
        """
        if not applied:
            return
        logger.warning(
            "order_rollback_started",
            order_id=order.id,
            cause=cause.code,
            operations=len(applied),
        )
        try:
            for step in reversed(applied):
                if step.op == _Op.RESERVE:
                    self._reservations.release(
                        order.id, order.tenant_id, step.product_id, step.warehouse_id,  # type: ignore[arg-type]
                        step.quantity,
                    )
                else:
                    self._reservations.reserve(
                        order.id, order.tenant_id, step.product_id, step.warehouse_id,  # type: ignore[arg-type]
                        step.quantity,
                    )
        except DomainException as rollback_exc:
            self._quarantine(order, rollback_exc)
            raise Inconsistent(
                order.id, f"rollback after {cause.code} failed: {rollback_exc}"
            ) from rollback_exc
        logger.info("order_rollback_finished", order_id=order.id)

    def _quarantine(self, order: Order, exc: Exception) -> None:
        order.mark_inconsistent()
        logger.error("order_marked_inconsistent", order_id=order.id, error=str(exc))
        try:
            with store_guard("flag order as inconsistent"):
                self._order_repo.save(order)
        except LedgerUnavailable:
            logger.exception("order_quarantine_not_saved", order_id=order.id)

    # --- Internal helpers -----------------------------------------------------

    def _load(self, tenant_id: str, order_id: int) -> Order:
        tenant_id = require_tenant(tenant_id)
        with store_guard("load order"):
            order = self._order_repo.get_by_id(tenant_id, order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order


def _to_lines(specs: list[OrderLineSpec]) -> list[OrderLine]:
    return [OrderLine.of(s.product_id, s.warehouse_id, s.quantity) for s in specs]


def _parse_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid order status '{raw}'") from exc
