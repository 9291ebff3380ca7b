#migration_engine\core\placement.py

"""Placement algorithm: bounds check, overlap scan and result values."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from migration_engine.core.errors import (
    DeviceNotFound,
    OutOfBounds,
    PlacementError,
    RackNotFound,
    SlotConflict,
)
from migration_engine.core.models import Device, Phase, Placement, Rack
from migration_engine.core.units import clamp_size, clamp_slot, range_end


class PlacementFailure(Enum):
    """Why a placement was rejected."""
    DEVICE_NOT_FOUND = "DeviceNotFound"
    RACK_NOT_FOUND = "RackNotFound"
    OUT_OF_BOUNDS = "OutOfBounds"
    SLOT_CONFLICT = "SlotConflict"


_FAILURE_BY_ERROR = {
    DeviceNotFound: PlacementFailure.DEVICE_NOT_FOUND,
    RackNotFound: PlacementFailure.RACK_NOT_FOUND,
    OutOfBounds: PlacementFailure.OUT_OF_BOUNDS,
    SlotConflict: PlacementFailure.SLOT_CONFLICT,
}


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of a placement request. Failures are values, not exceptions."""

    ok: bool
    placement: Optional[Placement] = None
    failure: Optional[PlacementFailure] = None
    message: Optional[str] = None
    conflicting_device_id: Optional[str] = None
    error: Optional[PlacementError] = None

    @classmethod
    def success(cls, placement: Placement) -> "PlacementResult":
        return cls(ok=True, placement=placement)

    @classmethod
    def from_error(cls, error: PlacementError) -> "PlacementResult":
        return cls(
            ok=False,
            failure=_FAILURE_BY_ERROR.get(type(error)),
            message=str(error),
            conflicting_device_id=getattr(error, "conflicting_device_id", None),
            error=error,
        )

    def raise_for_failure(self) -> None:
        """Re-raise the rejection for callers that prefer exceptions."""
        if not self.ok and self.error is not None:
            raise self.error

    def __bool__(self) -> bool:
        return self.ok


# -------------------------
# RANGE COMPUTATION
# -------------------------

def compute_range(start_slot: int, size: int, capacity: int) -> Tuple[int, int]:
    """
    Clamp the start slot and derive the inclusive end slot.

    The end is NOT clamped: a range running past the top of the rack must be
    reported by the caller, never silently shifted down.
    """
    start = clamp_slot(start_slot, capacity)
    end = range_end(start, clamp_size(size, capacity))
    return start, end


# -------------------------
# COLLISION SCAN
# -------------------------

def find_conflict(
    devices: Iterable[Device],
    device_id: str,
    phase: Phase,
    rack_id: str,
    start: int,
    end: int,
) -> Optional[Device]:
    """First other device whose placement for `phase` overlaps [start, end] in `rack_id`."""
    for other in devices:
        if other.device_id == device_id:
            continue
        placement = other.placement(phase)
        if placement is not None and placement.overlaps(rack_id, start, end):
            return other
    return None


# -------------------------
# VALIDATION
# -------------------------

def validate_placement(
    device: Device,
    rack: Rack,
    phase: Phase,
    start_slot: int,
    devices: Iterable[Device],
) -> Placement:
    """
    Validate a placement against one consistent read of the device collection.

    Returns the placement record to commit.
    Raises OutOfBounds or SlotConflict.
    """
    start, end = compute_range(start_slot, device.size, rack.capacity)

    if end > rack.capacity:
        raise OutOfBounds(rack.rack_id, start, end, rack.capacity)

    conflict = find_conflict(devices, device.device_id, phase, rack.rack_id, start, end)
    if conflict is not None:
        raise SlotConflict(
            rack_id=rack.rack_id,
            start=start,
            end=end,
            conflicting_device_id=conflict.device_id,
            conflicting_code=conflict.code,
            conflicting_name=conflict.name,
        )

    return Placement(rack_id=rack.rack_id, start=start, end=end)
