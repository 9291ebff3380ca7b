"""Test slot-range arithmetic and range computation."""

import pytest

from migration_engine.core.placement import compute_range
from migration_engine.core.units import (
    DEFAULT_RACK_CAPACITY,
    clamp_size,
    clamp_slot,
    range_end,
    ranges_overlap,
)


class TestClampSlot:
    """Test mapping integers onto the rack."""

    @pytest.mark.parametrize("u, expected", [
        (-5, 1),
        (0, 1),
        (1, 1),
        (17, 17),
        (42, 42),
        (43, 42),
        (1000, 42),
    ])
    def test_clamp_default_capacity(self, u, expected):
        """Test clamping against the standard 42U rack."""
        assert clamp_slot(u) == expected

    def test_fractional_slot_truncated(self):
        assert clamp_slot(5.5) == 5
        assert isinstance(clamp_slot(5.5), int)

    def test_clamp_custom_capacity(self):
        """Test clamping against a smaller rack."""
        assert clamp_slot(20, capacity=12) == 12
        assert clamp_slot(0, capacity=12) == 1

    def test_default_capacity_is_42(self):
        assert DEFAULT_RACK_CAPACITY == 42


class TestClampSize:
    """Test device size normalization."""

    @pytest.mark.parametrize("size, expected", [
        (0, 1),
        (-3, 1),
        (2, 2),
        (42, 42),
        (99, 42),
        ("4", 4),
        ("abc", 1),
        (None, 1),
    ])
    def test_clamp_size(self, size, expected):
        assert clamp_size(size) == expected


class TestRanges:
    """Test inclusive range helpers."""

    def test_range_end(self):
        """Test end slot of a multi-unit device."""
        assert range_end(10, 2) == 11
        assert range_end(1, 1) == 1

    @pytest.mark.parametrize("a, b, expected", [
        ((10, 11), (11, 12), True),
        ((10, 11), (12, 13), False),
        ((5, 20), (8, 9), True),
        ((1, 1), (1, 1), True),
        ((30, 32), (28, 29), False),
    ])
    def test_ranges_overlap(self, a, b, expected):
        """Test overlap is symmetric and includes shared boundaries."""
        assert ranges_overlap(*a, *b) is expected
        assert ranges_overlap(*b, *a) is expected


class TestComputeRange:
    """Test start clamping and end derivation."""

    def test_start_clamped_up(self):
        assert compute_range(0, 2, 42) == (1, 2)

    def test_start_clamped_down_end_not_clamped(self):
        """Test a range at the top keeps its overflowing end."""
        assert compute_range(50, 2, 42) == (42, 43)

    def test_exact_fit_at_top(self):
        assert compute_range(41, 2, 42) == (41, 42)

    def test_oversized_device_clamped_to_capacity(self):
        assert compute_range(1, 60, 42) == (1, 42)
