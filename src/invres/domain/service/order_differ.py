"""Domain service: Order Snapshot Differ.

Pure function, no side effects.  Compares the line items an order held
before a change with the proposed new ones and returns the smallest set of
ledger operations that moves the reservations from one to the other.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from invres.domain.model.value_objects import OrderLine


@dataclass(frozen=True)
class LedgerDelta:
    """One reservation operation on a (product, warehouse) line."""

    product_id: str
    warehouse_id: str
    quantity: int


@dataclass(frozen=True)
class OrderDiff:
    to_release: list[LedgerDelta] = field(default_factory=list)
    to_reserve: list[LedgerDelta] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_release and not self.to_reserve


def _totals(lines: Iterable[OrderLine]) -> dict[tuple[str, str], int]:
    totals: dict[tuple[str, str], int] = {}
    for line in lines:
        totals[line.line_key] = totals.get(line.line_key, 0) + line.quantity.value
    return totals


def diff(previous_lines: Iterable[OrderLine], new_lines: Iterable[OrderLine]) -> OrderDiff:
    """Compute the ledger deltas between two line snapshots.

    Per (product, warehouse):
    - line removed   -> release the previous quantity
    - quantity down  -> release the net decrease
    - quantity up    -> reserve the net increase
    - unchanged      -> nothing

    A warehouse change shows up as one removed key and one added key.
    Entries are ordered by key so the same input always yields the same
    sequence of ledger calls.
    """
    before = _totals(previous_lines)
    after = _totals(new_lines)

    to_release: list[LedgerDelta] = []
    to_reserve: list[LedgerDelta] = []

    for product_id, warehouse_id in sorted(before.keys() | after.keys()):
        change = after.get((product_id, warehouse_id), 0) - before.get((product_id, warehouse_id), 0)
        if change < 0:
            to_release.append(LedgerDelta(product_id, warehouse_id, -change))
        elif change > 0:
            to_reserve.append(LedgerDelta(product_id, warehouse_id, change))

    return OrderDiff(to_release=to_release, to_reserve=to_reserve)
