"""Static rack catalog."""

from typing import Dict, Iterable, List, Optional

from migration_engine.core.models import Rack
from migration_engine.core.units import DEFAULT_RACK_CAPACITY


class RackCatalog:
    """Racks known to the engine. Built once at startup, read-only afterwards."""

    def __init__(self, racks: Iterable[Rack]):
        self._racks: Dict[str, Rack] = {}
        for rack in racks:
            if rack.capacity < 1:
                raise ValueError(f"Rack {rack.rack_id} capacity must be at least 1")
            if rack.rack_id in self._racks:
                raise ValueError(f"Duplicate rack id {rack.rack_id}")
            self._racks[rack.rack_id] = rack

    def get(self, rack_id: str) -> Optional[Rack]:
        return self._racks.get(rack_id)

    def all(self) -> List[Rack]:
        return list(self._racks.values())

    @property
    def max_capacity(self) -> int:
        """Largest rack capacity, the ceiling used for device sizes."""
        return max((r.capacity for r in self._racks.values()), default=DEFAULT_RACK_CAPACITY)

    def __contains__(self, rack_id: str) -> bool:
        return rack_id in self._racks

    def __len__(self) -> int:
        return len(self._racks)


def build_rack_catalog(
    rack_ids: Iterable[str],
    capacity: int = DEFAULT_RACK_CAPACITY,
    name_prefix: str = "Rack",
) -> RackCatalog:
    """Create uniform racks, e.g. A1 -> Rack(rack_id="A1", name="Rack A1")."""
    return RackCatalog(
        Rack(rack_id=rack_id, name=f"{name_prefix} {rack_id}".strip(), capacity=capacity)
        for rack_id in rack_ids
    )
