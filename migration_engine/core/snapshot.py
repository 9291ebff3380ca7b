"""Snapshot model emitted after every mutation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

from migration_engine.core.models import Device
from migration_engine.core.schemas import device_to_record


ALLOWED_MUTATIONS = {
    "device.added",
    "device.updated",
    "device.deleted",
    "device.placed",
    "device.cleared",
    "device.status_changed",
    "registry.loaded",
}


@dataclass(frozen=True)
class Snapshot:
    """Full copy of the device collection at one point in time."""

    mutation: str
    device_id: Optional[str]
    devices: Tuple[Dict[str, Any], ...]
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def capture(mutation: str, device_id: Optional[str], devices: Iterable[Device]) -> "Snapshot":
        """Serialize devices by value so later mutations cannot leak into the snapshot."""
        if mutation not in ALLOWED_MUTATIONS:
            raise ValueError(f"Invalid mutation type: {mutation}")
        return Snapshot(
            mutation=mutation,
            device_id=device_id,
            devices=tuple(device_to_record(d) for d in devices),
        )

    def device_ids(self) -> list[str]:
        return [d["id"] for d in self.devices]
