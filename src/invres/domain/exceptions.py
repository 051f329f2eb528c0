"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer (and any API collaborator) can catch them uniformly.  Each
subclass carries a stable ``code`` plus a human-readable message; structured
details are exposed through ``to_dict()``.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "domain_error"

    def details(self) -> dict:
        return {}

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self), **self.details()}


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "validation_error"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "not_found"


class InsufficientStock(DomainException):
    """Not enough available stock to satisfy a reservation."""

    code = "insufficient_stock"

    def __init__(
        self,
        product_id: str,
        warehouse_id: str,
        requested: int,
        available: int,
    ) -> None:
        super().__init__(
            f"Insufficient stock for product '{product_id}' in warehouse "
            f"'{warehouse_id}': only {available} available, {requested} requested"
        )
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.requested = requested
        self.available = available

    def details(self) -> dict:
        return {
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
            "requested": self.requested,
            "available": self.available,
        }


class OrderLocked(DomainException):
    """The order is in a terminal status and its items can no longer change."""

    code = "order_locked"

    def __init__(self, order_id: int, status: str) -> None:
        super().__init__(f"Order #{order_id} cannot be modified in status '{status}'")
        self.order_id = order_id
        self.status = status

    def details(self) -> dict:
        return {"order_id": self.order_id, "status": self.status}


class NoActiveReservation(DomainException):
    """A commit was requested for a line that holds no active reservation."""

    code = "no_active_reservation"

    def __init__(self, order_id: int, product_id: str, warehouse_id: str) -> None:
        super().__init__(
            f"Order #{order_id} holds no active reservation for product "
            f"'{product_id}' in warehouse '{warehouse_id}'"
        )
        self.order_id = order_id
        self.product_id = product_id
        self.warehouse_id = warehouse_id

    def details(self) -> dict:
        return {
            "order_id": self.order_id,
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
        }


class Inconsistent(DomainException):
    """Compensation failed; the order needs manual reconciliation."""

    code = "inconsistent"

    def __init__(self, order_id: int | None, reason: str) -> None:
        subject = f"Order #{order_id}" if order_id is not None else "Stock"
        super().__init__(f"{subject} is inconsistent and needs manual reconciliation: {reason}")
        self.order_id = order_id
        self.reason = reason

    def details(self) -> dict:
        return {"order_id": self.order_id}


class LedgerUnavailable(DomainException):
    """Transient store failure.  Safe to retry the whole mutation."""

    code = "ledger_unavailable"
