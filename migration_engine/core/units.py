"""Slot-range arithmetic shared by placement, queries and seeding."""

from typing import Any

DEFAULT_RACK_CAPACITY = 42


def clamp_slot(u: int, capacity: int = DEFAULT_RACK_CAPACITY) -> int:
    """Map any integer onto [1, capacity]. Fractional slots are truncated."""
    return max(1, min(capacity, int(u)))


def clamp_size(size: Any, capacity: int = DEFAULT_RACK_CAPACITY) -> int:
    """Clamp a device size to [1, capacity]. Unparsable sizes become 1."""
    try:
        value = int(size)
    except (TypeError, ValueError):
        value = 1
    return clamp_slot(value, capacity)


def range_end(start: int, size: int) -> int:
    """Last slot occupied by a device of `size` units starting at `start`."""
    return start + size - 1


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """True iff the inclusive ranges share at least one unit."""
    return start_a <= end_b and start_b <= end_a
