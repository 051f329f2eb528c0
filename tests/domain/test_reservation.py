"""Unit tests for the Reservation record's lifecycle."""

import pytest

from invres.domain.exceptions import ValidationError
from invres.domain.model.reservation import Reservation, ReservationState
from invres.domain.model.value_objects import StockKey

KEY = StockKey("T1", "SKU-1", "WH-1")


def _active(quantity: int = 5) -> Reservation:
    return Reservation(order_id=1, key=KEY, quantity=quantity)


class TestGrowAndShrink:

    def test_grow_adds_quantity(self):
        r = _active(5)
        r.grow(3)
        assert r.quantity == 8
        assert r.is_active

    def test_partial_shrink_keeps_it_active(self):
        r = _active(5)
        r.shrink(2)
        assert r.quantity == 3
        assert r.state == ReservationState.ACTIVE

    def test_full_shrink_releases(self):
        r = _active(5)
        r.shrink(5)
        assert r.state == ReservationState.RELEASED

    def test_shrink_more_than_held_rejected(self):
        with pytest.raises(ValidationError, match="only holds 5"):
            _active(5).shrink(6)


class TestTerminalStates:

    def test_committed_cannot_change(self):
        r = _active()
        r.commit()
        with pytest.raises(ValidationError, match="committed and can no longer change"):
            r.grow(1)
        with pytest.raises(ValidationError, match="already committed"):
            r.reopen(1)

    def test_released_cannot_be_committed(self):
        r = _active()
        r.shrink(r.quantity)
        with pytest.raises(ValidationError, match="released"):
            r.commit()

    def test_reopen_starts_the_quantity_over(self):
        r = _active(5)
        r.shrink(5)
        r.reopen(2)
        assert r.is_active
        assert r.quantity == 2

    def test_reopen_of_active_rejected(self):
        with pytest.raises(ValidationError, match="already active"):
            _active().reopen(1)
