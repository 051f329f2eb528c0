"""MovementLogEntry: append-only audit trail of every ledger mutation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from invres.domain.model.value_objects import StockKey


class MovementReason(Enum):
    RESERVE = "reserve"
    RELEASE = "release"
    COMMIT = "commit"
    RECEIPT = "receipt"
    DAMAGE = "damage"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True)
class MovementLogEntry:
    key: StockKey
    delta: int  # change to ``available``
    reason: MovementReason
    order_id: int | None = None
    reserved_delta: int = 0
    committed_delta: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
