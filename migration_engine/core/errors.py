# migration_engine/core/errors.py

# -----------------------------
# Base Errors
# -----------------------------

class MigrationEngineError(Exception):
    """Base class for all migration engine errors."""
    pass


# -----------------------------
# Validation Errors
# -----------------------------

class MigrationValidationError(MigrationEngineError):
    """Invalid input such as an unknown phase or status flag name."""
    pass


# -----------------------------
# Placement Errors
# -----------------------------

class PlacementError(MigrationEngineError):
    """A placement request was rejected. State is left unchanged."""
    pass


class DeviceNotFound(PlacementError):
    """Operation referenced an unknown device id."""

    def __init__(self, device_id: str):
        super().__init__(f"Device {device_id} not found")
        self.device_id = device_id


class RackNotFound(PlacementError):
    """Operation referenced a rack that is not in the catalog."""

    def __init__(self, rack_id: str):
        super().__init__(f"Rack {rack_id} not found")
        self.rack_id = rack_id


class OutOfBounds(PlacementError):
    """Requested range runs past the top of the rack."""

    def __init__(self, rack_id: str, start: int, end: int, capacity: int):
        super().__init__(
            f"Range U{start}-U{end} exceeds rack {rack_id} capacity of {capacity}U"
        )
        self.rack_id = rack_id
        self.start = start
        self.end = end
        self.capacity = capacity


class SlotConflict(PlacementError):
    """Requested range intersects a range held by another device."""

    def __init__(
        self,
        rack_id: str,
        start: int,
        end: int,
        conflicting_device_id: str,
        conflicting_code: str,
        conflicting_name: str,
    ):
        super().__init__(
            f"Slots U{start}-U{end} in rack {rack_id} collide with "
            f"{conflicting_code} ({conflicting_name})"
        )
        self.rack_id = rack_id
        self.start = start
        self.end = end
        self.conflicting_device_id = conflicting_device_id
        self.conflicting_code = conflicting_code
        self.conflicting_name = conflicting_name


# -----------------------------
# Persistence Errors
# -----------------------------

class SnapshotPersistenceError(MigrationEngineError):
    """Snapshot sink could not store or read a snapshot."""
    pass
