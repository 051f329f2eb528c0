"""Unit tests for domain value objects."""

import pytest

from invres.domain.exceptions import ValidationError
from invres.domain.model.value_objects import OrderLine, Quantity, StockKey, require_tenant


# ── Tenant scope ─────────────────────────────────────────────────────────────


class TestRequireTenant:

    def test_normalizes_case_and_whitespace(self):
        assert require_tenant("  acme ") == "ACME"

    @pytest.mark.parametrize("bad", ["", "   ", None])
    def test_missing_tenant_rejected(self, bad):
        with pytest.raises(ValidationError, match="tenant scope is required"):
            require_tenant(bad)


# ── StockKey ─────────────────────────────────────────────────────────────────


class TestStockKey:

    def test_tenant_is_normalized(self):
        assert StockKey("acme", "SKU-1", "WH-1") == StockKey("ACME", "SKU-1", "WH-1")

    def test_keys_sort_by_tenant_then_product_then_warehouse(self):
        keys = [
            StockKey("T", "B", "WH-1"),
            StockKey("T", "A", "WH-2"),
            StockKey("T", "A", "WH-1"),
        ]
        assert sorted(keys) == [
            StockKey("T", "A", "WH-1"),
            StockKey("T", "A", "WH-2"),
            StockKey("T", "B", "WH-1"),
        ]

    def test_str(self):
        assert str(StockKey("acme", "SKU-1", "WH-1")) == "ACME/SKU-1@WH-1"

    def test_empty_product_rejected(self):
        with pytest.raises(ValidationError, match="Product ID is required"):
            StockKey("T", "", "WH-1")

    def test_empty_warehouse_rejected(self):
        with pytest.raises(ValidationError, match="Warehouse ID is required"):
            StockKey("T", "SKU-1", "")


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_valid_quantity(self):
        assert Quantity(5).value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(-3)

    def test_non_integer_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(2.5)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)


# ── OrderLine ────────────────────────────────────────────────────────────────


class TestOrderLine:

    def test_of_factory(self):
        line = OrderLine.of("SKU-1", "WH-1", 3)
        assert line.quantity == Quantity(3)
        assert line.line_key == ("SKU-1", "WH-1")

    def test_missing_warehouse_rejected(self):
        with pytest.raises(ValidationError, match="Warehouse ID is required"):
            OrderLine.of("SKU-1", "", 3)
