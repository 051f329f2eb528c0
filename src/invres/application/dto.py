"""Data Transfer Objects — plain containers that cross layer boundaries.

Requests are an explicit tagged union: the caller states what kind of
mutation it wants (create, item update, status change, cancel, delete)
instead of the engine guessing it from the shape of the payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from invres.domain.model.order import Order
from invres.domain.model.stock import StockRecord


# --- Inputs -----------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineSpec:
    """Input: one requested line (product, warehouse, quantity)."""

    product_id: str
    warehouse_id: str
    quantity: int


@dataclass(frozen=True)
class CreateOrder:
    tenant_id: str
    lines: list[OrderLineSpec]


@dataclass(frozen=True)
class ItemUpdate:
    """Replace an order's lines.  ``status`` may move a non-terminal order
    along (e.g. pending -> confirmed) in the same request."""

    tenant_id: str
    order_id: int
    lines: list[OrderLineSpec]
    status: str | None = None


@dataclass(frozen=True)
class StatusOnly:
    tenant_id: str
    order_id: int
    status: str
    note: str | None = None


@dataclass(frozen=True)
class Cancel:
    tenant_id: str
    order_id: int
    note: str | None = None


@dataclass(frozen=True)
class DeleteOrder:
    tenant_id: str
    order_id: int


OrderRequest = Union[CreateOrder, ItemUpdate, StatusOnly, Cancel, DeleteOrder]


@dataclass(frozen=True)
class ItemRequest:
    """Input to the availability check: a product and how many are wanted."""

    product_id: str
    quantity: int


# --- Outputs ----------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineDTO:
    product_id: str
    warehouse_id: str
    quantity: int


@dataclass(frozen=True)
class OrderDTO:
    """Output: an order as seen by the caller."""

    id: int
    tenant_id: str
    status: str
    lines: list[OrderLineDTO]
    inconsistent: bool
    created_at: str
    updated_at: str

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            tenant_id=order.tenant_id,
            status=order.status.value,
            lines=[
                OrderLineDTO(
                    product_id=line.product_id,
                    warehouse_id=line.warehouse_id,
                    quantity=line.quantity.value,
                )
                for line in order.lines
            ],
            inconsistent=order.inconsistent,
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            updated_at=order.updated_at.strftime("%Y-%m-%d %H:%M UTC"),
        )


@dataclass(frozen=True)
class AvailabilityLine:
    """Output: one line of an availability check."""

    product_id: str
    requested_qty: int
    available: int
    sufficient: bool
    reserved_by_order: int = 0
    status: str = "available"  # available | insufficient | not_found

    @property
    def message(self) -> str:
        if self.sufficient:
            return f"{self.requested_qty} units available"
        return f"Only {self.available} units available, {self.requested_qty} requested"


@dataclass(frozen=True)
class StockLineDTO:
    tenant_id: str
    product_id: str
    warehouse_id: str
    available: int
    reserved: int
    committed: int
    status: str

    @staticmethod
    def from_record(record: StockRecord) -> StockLineDTO:
        return StockLineDTO(
            tenant_id=record.key.tenant_id,
            product_id=record.key.product_id,
            warehouse_id=record.key.warehouse_id,
            available=record.available,
            reserved=record.reserved,
            committed=record.committed,
            status=record.stock_status.value,
        )


@dataclass(frozen=True)
class MovementDTO:
    product_id: str
    warehouse_id: str
    delta: int
    reserved_delta: int
    committed_delta: int
    reason: str
    order_id: int | None
    timestamp: str


@dataclass(frozen=True)
class DriftDTO:
    product_id: str
    warehouse_id: str
    ledger_reserved: int
    expected_reserved: int
