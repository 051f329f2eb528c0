"""Application service: Show Order use case (query)."""

from __future__ import annotations

from invres.application.dto import OrderDTO
from invres.domain.exceptions import EntityNotFoundError
from invres.domain.model.value_objects import require_tenant
from invres.domain.repository.order_repository import OrderRepository
from invres.domain.service.store_guard import store_guard


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, tenant_id: str, order_id: int) -> OrderDTO:
        with store_guard("load order"):
            order = self._order_repo.get_by_id(require_tenant(tenant_id), order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return OrderDTO.from_order(order)
