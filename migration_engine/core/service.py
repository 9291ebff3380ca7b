"""Migration service - registry, placement and status operations."""

import copy
import logging
from threading import RLock
from typing import Any, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import ValidationError

from migration_engine.catalog.racks import RackCatalog
from migration_engine.core.errors import DeviceNotFound, PlacementError, RackNotFound
from migration_engine.core.models import (
    Device,
    Phase,
    Placement,
    Rack,
    StatusFlag,
)
from migration_engine.core.placement import (
    PlacementResult,
    find_conflict,
    validate_placement,
)
from migration_engine.core.repository import DeviceRepository
from migration_engine.core.schemas import (
    DeviceDraft,
    DeviceSnapshotRecord,
    DeviceUpdate,
    device_to_record,
)
from migration_engine.core.sinks import SnapshotSink
from migration_engine.core.snapshot import Snapshot
from migration_engine.core.units import clamp_size, range_end


logger = logging.getLogger(__name__)


class MigrationService:
    """
    Owns the device registry and is the only writer to it.

    Every operation runs under one re-entrant lock, so the check-then-set of
    `place` is a single step relative to any other mutation. Callers only
    ever receive copies of devices.
    """

    def __init__(self, repository: DeviceRepository, racks: RackCatalog, sink: SnapshotSink):
        self._repo = repository
        self._racks = racks
        self._sink = sink
        self._lock = RLock()

    @property
    def capacity(self) -> int:
        """Ceiling used when clamping device sizes."""
        return self._racks.max_capacity

    # -------------------------
    # REGISTRY
    # -------------------------

    def add_device(self, draft: Union[DeviceDraft, Mapping[str, Any]]) -> str:
        """Register a new device and return its id."""
        draft = self._coerce_draft(draft)

        with self._lock:
            device = Device(
                device_id=self._new_id(),
                category=draft.category,
                code=draft.code,
                name=draft.name,
                brand=draft.brand,
                model=draft.model,
                ports=draft.ports,
                size=clamp_size(draft.size, self.capacity),
                mgmt_ip=draft.mgmt_ip,
                serial=draft.serial,
                port_mapping=draft.port_mapping,
            )
            previous = self._checkpoint()
            self._repo.add(device)
            logger.info(f"[engine] added device {device.device_id} ({device.code or device.name})")
            self._emit("device.added", device.device_id, previous)
            return device.device_id

    def update_device(
        self,
        device_id: str,
        fields: Union[DeviceUpdate, Mapping[str, Any]],
    ) -> PlacementResult:
        """
        Merge descriptive fields into an existing device.

        Status is never touched. A size change re-derives every placed range
        from its start slot; when a new range would leave its rack or collide
        with another device the whole update is rejected and a failed result
        is returned. Unknown ids leave state untouched and report
        DeviceNotFound.
        """
        if not isinstance(fields, DeviceUpdate):
            fields = DeviceUpdate.model_validate(dict(fields))
        changes = fields.changes()

        with self._lock:
            device = self._repo.get(device_id)
            if device is None:
                logger.debug(f"[engine] update ignored, device {device_id} not found")
                return PlacementResult.from_error(DeviceNotFound(device_id))

            if "size" in changes:
                changes["size"] = clamp_size(changes["size"], self.capacity)

            updated = copy.deepcopy(device)
            for name, value in changes.items():
                setattr(updated, name, value)

            if "size" in changes:
                try:
                    self._resize_placements(updated)
                except PlacementError as e:
                    logger.warning(f"[engine] update of {device_id} rejected: {e}")
                    return PlacementResult.from_error(e)

            previous = self._checkpoint()
            self._repo.update(updated)
            logger.info(f"[engine] updated device {device_id}: {sorted(changes)}")
            self._emit("device.updated", device_id, previous)
            return PlacementResult(ok=True)

    def delete_device(self, device_id: str) -> None:
        """Remove a device. Its occupancy disappears with it."""
        with self._lock:
            if self._repo.get(device_id) is None:
                logger.debug(f"[engine] delete ignored, device {device_id} not found")
                return
            previous = self._checkpoint()
            self._repo.remove(device_id)
            logger.info(f"[engine] deleted device {device_id}")
            self._emit("device.deleted", device_id, previous)

    def lookup_device(self, device_id: str) -> Optional[Device]:
        """Copy of a device, or None."""
        with self._lock:
            device = self._repo.get(device_id)
            return copy.deepcopy(device) if device is not None else None

    def list_devices(self) -> List[Device]:
        """Copies of all devices in registry order."""
        with self._lock:
            return copy.deepcopy(self._repo.list_all())

    def lookup_rack(self, rack_id: str) -> Optional[Rack]:
        return self._racks.get(rack_id)

    def list_racks(self) -> List[Rack]:
        return self._racks.all()

    # -------------------------
    # PLACEMENT
    # -------------------------

    def place(
        self,
        phase: Union[Phase, str],
        device_id: str,
        rack_id: str,
        start_slot: int,
    ) -> PlacementResult:
        """
        Place (or move) a device for a phase.

        Returns a failed result and leaves state untouched when the device or
        rack is unknown, the range leaves the rack, or it collides with
        another device. A sink failure restores the previous state and
        propagates as SnapshotPersistenceError.
        """
        phase = Phase.parse(phase)

        with self._lock:
            try:
                device = self._require_device(device_id)
                rack = self._require_rack(rack_id)
                placement = validate_placement(
                    device, rack, phase, start_slot, self._repo.list_all()
                )
            except PlacementError as e:
                logger.warning(f"[engine] place {device_id} -> {rack_id} ({phase.value}) rejected: {e}")
                return PlacementResult.from_error(e)

            previous = self._checkpoint()
            device.set_placement(phase, placement)
            self._repo.update(device)
            logger.info(
                f"[engine] placed {device_id} in {rack_id} "
                f"U{placement.start}-U{placement.end} ({phase.value})"
            )
            self._emit("device.placed", device_id, previous)
            return PlacementResult.success(placement)

    def clear_placement(self, phase: Union[Phase, str], device_id: str) -> None:
        """Remove the placement record for one phase. Unknown or unplaced devices are ignored."""
        phase = Phase.parse(phase)

        with self._lock:
            device = self._repo.get(device_id)
            if device is None or device.placement(phase) is None:
                return

            previous = self._checkpoint()
            device.set_placement(phase, None)
            self._repo.update(device)
            logger.info(f"[engine] cleared {phase.value} placement of {device_id}")
            self._emit("device.cleared", device_id, previous)

    # -------------------------
    # MIGRATION STATUS
    # -------------------------

    def set_flag(self, device_id: str, flag: Union[StatusFlag, str], value: bool) -> None:
        """Set one readiness flag. Unknown devices are ignored."""
        flag = StatusFlag.parse(flag)

        with self._lock:
            device = self._repo.get(device_id)
            if device is None:
                logger.debug(f"[engine] set_flag ignored, device {device_id} not found")
                return

            previous = self._checkpoint()
            device.status.set(flag, value)
            self._repo.update(device)
            logger.info(f"[engine] {device_id} {flag.value}={bool(value)}")
            self._emit("device.status_changed", device_id, previous)

    @staticmethod
    def is_complete(device: Device) -> bool:
        """True iff all four flags are set."""
        return device.status.is_complete()

    # -------------------------
    # SNAPSHOTS
    # -------------------------

    def snapshot(self) -> List[dict]:
        """Current state as JSON-ready device records."""
        with self._lock:
            return [device_to_record(d) for d in self._repo.list_all()]

    def load_snapshot(self, records: Iterable[Any]) -> int:
        """
        Replace the registry with externally stored records.

        Malformed records are repaired field by field; placements that cannot
        be honoured (unknown rack, out of bounds, overlapping an earlier record)
        are dropped. Returns the number of devices loaded.
        """
        with self._lock:
            devices: List[Device] = []
            seen_ids = set()

            for index, raw in enumerate(records):
                if isinstance(raw, DeviceSnapshotRecord):
                    record = raw
                elif isinstance(raw, Mapping):
                    try:
                        record = DeviceSnapshotRecord.model_validate(dict(raw))
                    except ValidationError as e:
                        logger.warning(f"[engine] skipping unreadable record #{index}: {e}")
                        continue
                else:
                    logger.warning(f"[engine] skipping non-mapping record #{index}: {raw!r}")
                    continue

                device_id = record.id
                if not device_id or device_id in seen_ids:
                    device_id = self._new_id()
                    logger.warning(f"[engine] record #{index} has missing or duplicate id, assigned {device_id}")
                seen_ids.add(device_id)

                device = Device(
                    device_id=device_id,
                    category=record.category,
                    code=record.code,
                    name=record.name,
                    brand=record.brand,
                    model=record.model,
                    ports=record.ports,
                    size=clamp_size(record.size, self.capacity),
                    mgmt_ip=record.mgmt_ip,
                    serial=record.serial,
                    port_mapping=record.port_mapping,
                    status=record.status.to_domain(),
                )
                for phase, placement in ((Phase.BEFORE, record.before), (Phase.AFTER, record.after)):
                    if placement is not None:
                        device.set_placement(
                            phase,
                            self._restore_placement(device, phase, placement.rack_id, placement.start, devices),
                        )
                devices.append(device)

            previous = self._checkpoint()
            self._repo.replace_all(devices)
            logger.info(f"[engine] loaded {len(devices)} devices from snapshot")
            self._emit("registry.loaded", None, previous)
            return len(devices)

    # -------------------------
    # INTERNAL HELPERS
    # -------------------------

    def _restore_placement(
        self,
        device: Device,
        phase: Phase,
        rack_id: str,
        start: int,
        loaded: List[Device],
    ) -> Optional[Placement]:
        rack = self._racks.get(rack_id)
        if rack is None:
            logger.warning(f"[engine] dropping {phase.value} placement of {device.device_id}: unknown rack {rack_id}")
            return None

        end = range_end(start, clamp_size(device.size, rack.capacity))
        if start < 1 or end > rack.capacity:
            logger.warning(
                f"[engine] dropping {phase.value} placement of {device.device_id}: "
                f"U{start}-U{end} outside rack {rack_id}"
            )
            return None

        conflict = find_conflict(loaded, device.device_id, phase, rack_id, start, end)
        if conflict is not None:
            logger.warning(
                f"[engine] dropping {phase.value} placement of {device.device_id}: "
                f"overlaps {conflict.device_id} in rack {rack_id}"
            )
            return None

        return Placement(rack_id=rack_id, start=start, end=end)

    def _coerce_draft(self, draft: Union[DeviceDraft, Mapping[str, Any]]) -> DeviceDraft:
        if isinstance(draft, DeviceDraft):
            return draft
        try:
            return DeviceDraft.model_validate(dict(draft))
        except ValidationError as e:
            # lenient validators make this unreachable for plain JSON values
            logger.warning(f"[engine] draft could not be read, using defaults: {e}")
            return DeviceDraft()

    def _require_device(self, device_id: str) -> Device:
        device = self._repo.get(device_id)
        if device is None:
            raise DeviceNotFound(device_id)
        return device

    def _require_rack(self, rack_id: str) -> Rack:
        rack = self._racks.get(rack_id)
        if rack is None:
            raise RackNotFound(rack_id)
        return rack

    @staticmethod
    def _new_id() -> str:
        return uuid4().hex

    def _resize_placements(self, device: Device) -> None:
        """Re-derive each placed range of `device` for its current size. Raises PlacementError."""
        others = self._repo.list_all()
        for phase in Phase:
            current = device.placement(phase)
            if current is None:
                continue
            rack = self._require_rack(current.rack_id)
            device.set_placement(
                phase, validate_placement(device, rack, phase, current.start, others)
            )

    def _checkpoint(self) -> List[Device]:
        """Copy of the registry to restore if the sink rejects the next snapshot."""
        return copy.deepcopy(self._repo.list_all())

    def _emit(self, mutation: str, device_id: Optional[str], previous: List[Device]) -> None:
        """
        Hand the full state to the sink. Runs inside the lock, after the mutation.

        If the sink raises, the registry is restored to `previous` before the
        error propagates, so a failed write leaves no in-memory change behind.
        """
        try:
            self._sink.emit(Snapshot.capture(mutation, device_id, self._repo.list_all()))
        except Exception:
            self._repo.replace_all(previous)
            logger.error(f"[engine] {mutation} rolled back, snapshot sink failed", exc_info=True)
            raise
