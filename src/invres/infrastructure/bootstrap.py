"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from invres.application.check_availability import AvailabilityQueryService
from invres.application.order_consistency import OrderConsistencyOrchestrator
from invres.application.reconcile_stock import ReconcileStockHandler
from invres.application.set_stock import SetStockHandler
from invres.application.show_order import ShowOrderHandler
from invres.application.show_stock import ShowMovementsHandler, ShowStockHandler
from invres.domain.service.reconciliation import ReconciliationService
from invres.domain.service.reservation_manager import ReservationManager
from invres.domain.service.stock_ledger import StockLedger
from invres.infrastructure.log_config import configure_logging
from invres.infrastructure.persistence.json_movement_repository import (
    JsonMovementRepository,
)
from invres.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from invres.infrastructure.persistence.json_reservation_repository import (
    JsonReservationRepository,
)
from invres.infrastructure.persistence.json_stock_repository import (
    JsonStockRepository,
)
from invres.infrastructure.settings import Settings


@lru_cache(maxsize=1)
def settings() -> Settings:
    loaded = Settings()
    configure_logging(loaded)
    return loaded


# --- Repositories -------------------------------------------------------------


def stock_repository() -> JsonStockRepository:
    return JsonStockRepository(settings().data_dir / "stock.json")


def reservation_repository() -> JsonReservationRepository:
    return JsonReservationRepository(settings().data_dir / "reservations.json")


def movement_repository() -> JsonMovementRepository:
    return JsonMovementRepository(settings().data_dir / "movements.json")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(settings().data_dir / "orders.json")


# --- Services -----------------------------------------------------------------


def stock_ledger() -> StockLedger:
    return StockLedger(
        stock_repo=stock_repository(),
        movement_repo=movement_repository(),
        max_attempts=settings().cas_max_attempts,
        default_minimum=settings().low_stock_threshold,
    )


def reservation_manager() -> ReservationManager:
    return ReservationManager(ledger=stock_ledger(), reservation_repo=reservation_repository())


def order_orchestrator() -> OrderConsistencyOrchestrator:
    return OrderConsistencyOrchestrator(
        order_repo=order_repository(),
        reservations=reservation_manager(),
    )


def availability_service() -> AvailabilityQueryService:
    return AvailabilityQueryService(
        ledger=stock_ledger(),
        reservation_repo=reservation_repository(),
    )


def set_stock_handler() -> SetStockHandler:
    return SetStockHandler(ledger=stock_ledger())


def show_stock_handler() -> ShowStockHandler:
    return ShowStockHandler(stock_repo=stock_repository())


def show_movements_handler() -> ShowMovementsHandler:
    return ShowMovementsHandler(movement_repo=movement_repository())


def show_order_handler() -> ShowOrderHandler:
    return ShowOrderHandler(order_repo=order_repository())


def reconcile_handler() -> ReconcileStockHandler:
    return ReconcileStockHandler(
        service=ReconciliationService(
            stock_repo=stock_repository(),
            reservation_repo=reservation_repository(),
        )
    )
