"""Unit tests for the error taxonomy surfaced to collaborators."""

from invres.domain.exceptions import (
    DomainException,
    Inconsistent,
    InsufficientStock,
    LedgerUnavailable,
    OrderLocked,
)


class TestToDict:

    def test_insufficient_stock_carries_structured_detail(self):
        exc = InsufficientStock("SKU-1", "WH-1", requested=8, available=6)
        assert exc.to_dict() == {
            "code": "insufficient_stock",
            "message": "Insufficient stock for product 'SKU-1' in warehouse 'WH-1': "
                       "only 6 available, 8 requested",
            "product_id": "SKU-1",
            "warehouse_id": "WH-1",
            "requested": 8,
            "available": 6,
        }

    def test_order_locked(self):
        exc = OrderLocked(3, "shipped")
        assert exc.to_dict()["code"] == "order_locked"
        assert exc.to_dict()["status"] == "shipped"

    def test_inconsistent_without_order(self):
        assert str(Inconsistent(None, "drift")).startswith("Stock is inconsistent")

    def test_every_error_is_a_domain_exception(self):
        assert isinstance(LedgerUnavailable("down"), DomainException)
        assert LedgerUnavailable("down").to_dict() == {
            "code": "ledger_unavailable",
            "message": "down",
        }
