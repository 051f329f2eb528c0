"""Unit tests for the Order aggregate and its status rules."""

import pytest

from invres.domain.exceptions import Inconsistent, OrderLocked, ValidationError
from invres.domain.model.order import MAX_LINE_ITEMS, Order, OrderStatus
from invres.domain.model.value_objects import OrderLine


def _make_order(*lines: OrderLine) -> Order:
    order = Order.create("t1", list(lines) or [OrderLine.of("SKU-1", "WH-1", 2)])
    order.id = 1
    return order


class TestOrderCreation:

    def test_happy_path(self):
        order = Order.create("acme", [OrderLine.of("SKU-1", "WH-1", 2)])
        assert order.tenant_id == "ACME"
        assert order.status == OrderStatus.PENDING
        assert order.id is None  # assigned by the orchestrator
        assert [c.status for c in order.timeline] == [OrderStatus.PENDING]

    def test_empty_order_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            Order.create("acme", [])

    def test_too_many_lines_rejected(self):
        lines = [OrderLine.of(f"SKU-{i}", "WH-1", 1) for i in range(MAX_LINE_ITEMS + 1)]
        with pytest.raises(ValidationError, match="Maximum 50 items"):
            Order.create("acme", lines)

    def test_missing_tenant_rejected(self):
        with pytest.raises(ValidationError, match="tenant scope"):
            Order.create(" ", [OrderLine.of("SKU-1", "WH-1", 2)])


class TestStatusTransitions:

    def test_change_status_appends_to_timeline(self):
        order = _make_order()
        order.change_status(OrderStatus.CONFIRMED, "paid")
        assert order.status == OrderStatus.CONFIRMED
        assert order.timeline[-1].note == "paid"

    def test_repeating_the_current_status_is_a_no_op(self):
        order = _make_order()
        order.change_status(OrderStatus.PENDING)
        assert len(order.timeline) == 1

    @pytest.mark.parametrize(
        "closed", [OrderStatus.CANCELLED, OrderStatus.RETURNED, OrderStatus.REFUNDED]
    )
    def test_closed_orders_cannot_move(self, closed):
        order = _make_order()
        order.status = closed
        with pytest.raises(OrderLocked, match=f"status '{closed.value}'"):
            order.ensure_can_transition(OrderStatus.CONFIRMED)

    def test_fulfilled_order_can_progress(self):
        order = _make_order()
        order.status = OrderStatus.SHIPPED
        order.change_status(OrderStatus.DELIVERED)
        assert order.status == OrderStatus.DELIVERED

    def test_fulfilled_order_can_be_returned(self):
        order = _make_order()
        order.status = OrderStatus.DELIVERED
        order.change_status(OrderStatus.RETURNED)
        assert order.status == OrderStatus.RETURNED

    def test_fulfilled_order_cannot_go_back(self):
        order = _make_order()
        order.status = OrderStatus.SHIPPED
        with pytest.raises(OrderLocked):
            order.ensure_can_transition(OrderStatus.PROCESSING)

    def test_unshipped_order_cannot_be_returned(self):
        order = _make_order()
        with pytest.raises(ValidationError, match="cancel order #1 instead"):
            order.ensure_can_transition(OrderStatus.REFUNDED)

    def test_fulfilled_order_cannot_be_cancelled(self):
        order = _make_order()
        order.status = OrderStatus.COMPLETED
        with pytest.raises(OrderLocked):
            order.ensure_can_transition(OrderStatus.CANCELLED)


class TestItemEdits:

    def test_replace_lines(self):
        order = _make_order()
        order.replace_lines([OrderLine.of("SKU-2", "WH-1", 5)])
        assert order.line_quantities() == {("SKU-2", "WH-1"): 5}

    @pytest.mark.parametrize(
        "terminal", [OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED]
    )
    def test_terminal_order_items_locked(self, terminal):
        order = _make_order()
        order.status = terminal
        with pytest.raises(OrderLocked):
            order.ensure_items_editable()

    def test_quarantined_order_rejects_everything(self):
        order = _make_order()
        order.mark_inconsistent()
        with pytest.raises(Inconsistent):
            order.ensure_items_editable()
        with pytest.raises(Inconsistent):
            order.ensure_can_transition(OrderStatus.CONFIRMED)

    def test_line_quantities_sums_duplicates(self):
        order = _make_order(
            OrderLine.of("SKU-1", "WH-1", 2),
            OrderLine.of("SKU-1", "WH-1", 3),
            OrderLine.of("SKU-1", "WH-2", 1),
        )
        assert order.line_quantities() == {("SKU-1", "WH-1"): 5, ("SKU-1", "WH-2"): 1}
