"""Tests for room counter arithmetic — pure, no IO."""

import pytest

from dataroom.core.room_stats import (
    RoomTotals, compare_totals, creation_delta, removal_delta,
)


def test_creation_delta_is_one_node_of_size():
    assert creation_delta(2_000_000) == RoomTotals(1, 2_000_000)
    assert creation_delta(0) == RoomTotals(1, 0)


def test_creation_delta_rejects_negative_size():
    with pytest.raises(ValueError):
        creation_delta(-1)


def test_removal_delta_sums_freed_rows():
    delta = removal_delta([100, 50, 0])
    assert delta == RoomTotals(-3, -150)
    assert delta.is_negative()


def test_removal_delta_of_nothing_is_zero():
    assert removal_delta([]) == RoomTotals(0, 0)


def test_compare_totals_detects_drift():
    assert compare_totals(RoomTotals(2, 30), RoomTotals(2, 30))
    assert not compare_totals(RoomTotals(3, 30), RoomTotals(2, 30))
    assert RoomTotals(2, 30).as_tuple() == (2, 30)
