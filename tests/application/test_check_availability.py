"""Integration tests for the availability query."""

import pytest

from invres.application.check_availability import AvailabilityQueryService, all_available
from invres.application.dto import ItemRequest
from invres.domain.exceptions import ValidationError
from invres.domain.model.stock import StockRecord
from invres.domain.model.value_objects import StockKey
from invres.domain.service.reservation_manager import ReservationManager
from invres.domain.service.stock_ledger import StockLedger
from tests.fakes import FakeMovementRepository, FakeReservationRepository, FakeStockRepository


def _setup(available: int = 8):
    stock_repo = FakeStockRepository([StockRecord(StockKey("T1", "A", "WH-1"), available=available)])
    reservation_repo = FakeReservationRepository()
    ledger = StockLedger(stock_repo, FakeMovementRepository())
    manager = ReservationManager(ledger, reservation_repo)
    service = AvailabilityQueryService(ledger, reservation_repo)
    return service, manager


class TestCheckAvailability:

    def test_enough_stock(self):
        service, _ = _setup(8)
        [line] = service.check_availability("T1", [ItemRequest("A", 5)], "WH-1")
        assert line.sufficient
        assert line.status == "available"
        assert line.message == "5 units available"

    def test_not_enough_stock(self):
        service, _ = _setup(3)
        [line] = service.check_availability("T1", [ItemRequest("A", 5)], "WH-1")
        assert not line.sufficient
        assert line.status == "insufficient"
        assert line.message == "Only 3 units available, 5 requested"

    def test_unknown_product_is_not_found(self):
        service, _ = _setup()
        [line] = service.check_availability("T1", [ItemRequest("NOPE", 1)], "WH-1")
        assert line.status == "not_found"
        assert line.available == 0
        assert not line.sufficient

    def test_order_edit_counts_its_own_hold(self):
        """8 in stock, the order holds 2: an edit to 8 is still possible."""
        service, manager = _setup(8)
        manager.reserve(1, "T1", "A", "WH-1", 2)

        [line] = service.check_availability("T1", [ItemRequest("A", 8)], "WH-1", order_id=1)

        assert line.sufficient
        assert line.available == 8
        assert line.reserved_by_order == 2

    def test_without_order_the_hold_is_not_counted(self):
        service, manager = _setup(8)
        manager.reserve(1, "T1", "A", "WH-1", 2)

        [line] = service.check_availability("T1", [ItemRequest("A", 8)], "WH-1")

        assert not line.sufficient
        assert line.available == 6

    def test_duplicate_items_are_summed(self):
        service, _ = _setup(8)
        [line] = service.check_availability(
            "T1", [ItemRequest("A", 5), ItemRequest("A", 4)], "WH-1"
        )
        assert line.requested_qty == 9
        assert not line.sufficient

    def test_check_moves_no_stock(self):
        service, _ = _setup(8)
        service.check_availability("T1", [ItemRequest("A", 5)], "WH-1")
        assert service.check_availability("T1", [ItemRequest("A", 8)], "WH-1")[0].sufficient

    def test_zero_quantity_rejected(self):
        service, _ = _setup()
        with pytest.raises(ValidationError, match="must be at least 1"):
            service.check_availability("T1", [ItemRequest("A", 0)], "WH-1")

    def test_empty_request_rejected(self):
        service, _ = _setup()
        with pytest.raises(ValidationError, match="At least one item"):
            service.check_availability("T1", [], "WH-1")


class TestAllAvailable:

    def test_summary_flag(self):
        service, _ = _setup(8)
        lines = service.check_availability(
            "T1", [ItemRequest("A", 2), ItemRequest("NOPE", 1)], "WH-1"
        )
        assert all_available(lines) is False
        assert all_available(lines[:1]) is True
