"""Read-only projections over the device collection.

Every function recomputes from the devices it is given; nothing is cached.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from migration_engine.core.models import Device, DeviceCategory, Phase, Rack
from migration_engine.core.units import clamp_size, range_end, ranges_overlap


@dataclass(frozen=True)
class RackOccupancy:
    """Units used and free in one rack for one phase."""
    rack_id: str
    phase: Phase
    capacity: int
    used_units: int
    device_count: int

    @property
    def free_units(self) -> int:
        return self.capacity - self.used_units

    @property
    def utilization(self) -> float:
        return self.used_units / self.capacity if self.capacity else 0.0


@dataclass(frozen=True)
class MigrationSummary:
    """Dashboard totals."""
    total: int
    by_category: Dict[DeviceCategory, int]
    placed_before: int
    placed_after: int
    complete: int

    @property
    def completion_percent(self) -> float:
        return round(100.0 * self.complete / self.total, 1) if self.total else 0.0


# -------------------------
# COUNTS
# -------------------------

def count_by_category(devices: Iterable[Device]) -> Dict[DeviceCategory, int]:
    counts = {category: 0 for category in DeviceCategory}
    for device in devices:
        counts[device.category] += 1
    return counts


def count_placed(devices: Iterable[Device], phase: Phase) -> int:
    return sum(1 for d in devices if d.placement(phase) is not None)


def count_complete(devices: Iterable[Device]) -> int:
    return sum(1 for d in devices if d.status.is_complete())


def migration_summary(devices: Iterable[Device]) -> MigrationSummary:
    devices = list(devices)
    return MigrationSummary(
        total=len(devices),
        by_category=count_by_category(devices),
        placed_before=count_placed(devices, Phase.BEFORE),
        placed_after=count_placed(devices, Phase.AFTER),
        complete=count_complete(devices),
    )


# -------------------------
# LISTS
# -------------------------

def unplaced(devices: Iterable[Device], phase: Phase) -> List[Device]:
    """Devices without a placement for `phase`, in registry order."""
    return [d for d in devices if d.placement(phase) is None]


def rack_devices(devices: Iterable[Device], rack_id: str, phase: Phase) -> List[Device]:
    """Devices placed in a rack for a phase, lowest start slot first."""
    placed = [
        d for d in devices
        if d.placement(phase) is not None and d.placement(phase).rack_id == rack_id
    ]
    return sorted(placed, key=lambda d: d.placement(phase).start)


def device_at_slot(
    devices: Iterable[Device],
    rack_id: str,
    phase: Phase,
    slot: int,
) -> Optional[Device]:
    """Device occupying `slot`, found by linear scan."""
    for device in devices:
        placement = device.placement(phase)
        if placement is not None and placement.rack_id == rack_id and placement.contains(slot):
            return device
    return None


# -------------------------
# RACK VIEWS
# -------------------------

def rack_occupancy(devices: Iterable[Device], rack: Rack, phase: Phase) -> RackOccupancy:
    placed = rack_devices(devices, rack.rack_id, phase)
    return RackOccupancy(
        rack_id=rack.rack_id,
        phase=phase,
        capacity=rack.capacity,
        used_units=sum(d.placement(phase).length for d in placed),
        device_count=len(placed),
    )


def first_free_start(
    devices: Iterable[Device],
    rack: Rack,
    phase: Phase,
    size: int,
) -> Optional[int]:
    """
    Lowest start slot where a device of `size` units would fit.

    A suggestion for callers only; placement itself never shifts a request.
    """
    size = clamp_size(size, rack.capacity)
    taken = [d.placement(phase) for d in rack_devices(devices, rack.rack_id, phase)]

    start = 1
    while range_end(start, size) <= rack.capacity:
        end = range_end(start, size)
        blocking = [p for p in taken if ranges_overlap(p.start, p.end, start, end)]
        if not blocking:
            return start
        start = max(p.end for p in blocking) + 1
    return None
