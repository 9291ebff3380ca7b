"""Core domain models (racks, devices, placements, migration status)."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from migration_engine.core.errors import MigrationValidationError
from migration_engine.core.units import DEFAULT_RACK_CAPACITY, ranges_overlap


class Phase(Enum):
    """Placement context of a device."""

    BEFORE = "before"
    AFTER = "after"

    @classmethod
    def parse(cls, value: Union["Phase", str]) -> "Phase":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise MigrationValidationError(f"Unknown phase: {value!r}") from None


class DeviceCategory(Enum):
    """Device classification."""

    NETWORK = "Network"
    STORAGE = "Storage"
    SERVER = "Server"
    OTHER = "Other"


class StatusFlag(Enum):
    """Migration readiness flags."""

    MOUNTED = "mounted"
    CABLED = "cabled"
    POWERED = "powered"
    TESTED = "tested"

    @classmethod
    def parse(cls, value: Union["StatusFlag", str]) -> "StatusFlag":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise MigrationValidationError(f"Unknown status flag: {value!r}") from None


# ============================================
# RACK
# ============================================

@dataclass(frozen=True)
class Rack:
    """Rack enclosure. Static reference data, never holds device references."""
    rack_id: str
    name: str
    capacity: int = DEFAULT_RACK_CAPACITY


# ============================================
# PLACEMENT
# ============================================

@dataclass(frozen=True)
class Placement:
    """Placement record: inclusive slot range of one device in one phase."""
    rack_id: str
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def contains(self, slot: int) -> bool:
        return self.start <= slot <= self.end

    def overlaps(self, rack_id: str, start: int, end: int) -> bool:
        """Check collision with a range in the given rack."""
        return self.rack_id == rack_id and ranges_overlap(self.start, self.end, start, end)


# ============================================
# MIGRATION STATUS
# ============================================

@dataclass
class MigrationStatus:
    """
    Four independent readiness switches.

    There are no transition rules between flags: any flag may be set or
    cleared in any order, completion is their conjunction.
    """
    mounted: bool = False
    cabled: bool = False
    powered: bool = False
    tested: bool = False

    def get(self, flag: StatusFlag) -> bool:
        return getattr(self, flag.value)

    def set(self, flag: StatusFlag, value: bool) -> None:
        setattr(self, flag.value, bool(value))

    def is_complete(self) -> bool:
        return self.mounted and self.cabled and self.powered and self.tested


# ============================================
# DEVICE
# ============================================

@dataclass
class Device:
    """Equipment tracked through the relocation."""

    # Identity
    device_id: str
    category: DeviceCategory = DeviceCategory.OTHER
    code: str = ""

    # Description
    name: str = ""
    brand: str = ""
    model: str = ""
    ports: int = 0
    size: int = 1  # slot units

    mgmt_ip: Optional[str] = None
    serial: Optional[str] = None
    port_mapping: Optional[str] = None

    # Placement records (None = unplaced for that phase)
    before: Optional[Placement] = None
    after: Optional[Placement] = None

    status: MigrationStatus = field(default_factory=MigrationStatus)

    # -------------------------
    # PLACEMENT ACCESS
    # -------------------------

    def placement(self, phase: Phase) -> Optional[Placement]:
        """Return the placement record for a phase."""
        return self.before if phase == Phase.BEFORE else self.after

    def set_placement(self, phase: Phase, placement: Optional[Placement]) -> None:
        """Replace (or remove, with None) the placement record for a phase."""
        if phase == Phase.BEFORE:
            self.before = placement
        else:
            self.after = placement

    def is_placed(self, phase: Phase) -> bool:
        return self.placement(phase) is not None

    def is_complete(self) -> bool:
        return self.status.is_complete()


def is_complete(device: Device) -> bool:
    """True iff all four migration flags of the device are set."""
    return device.status.is_complete()
