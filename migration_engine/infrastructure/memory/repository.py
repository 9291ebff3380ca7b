# migration_engine/infrastructure/memory/repository.py

from threading import Lock
from typing import Iterable, List

from migration_engine.core.repository import DeviceRepository
from migration_engine.core.models import Device
from migration_engine.core.errors import MigrationValidationError


class InMemoryDeviceRepository(DeviceRepository):
    def __init__(self):
        # dicts keep insertion order, which is the registry order
        self._store: dict[str, Device] = {}
        self._lock = Lock()

    def add(self, device: Device) -> None:
        with self._lock:
            if device.device_id in self._store:
                raise MigrationValidationError(f"Device {device.device_id} already exists")
            self._store[device.device_id] = device

    def get(self, device_id: str) -> Device | None:
        return self._store.get(device_id)

    def update(self, device: Device) -> None:
        with self._lock:
            if device.device_id not in self._store:
                raise MigrationValidationError(f"Device {device.device_id} not found")
            self._store[device.device_id] = device

    def remove(self, device_id: str) -> bool:
        with self._lock:
            return self._store.pop(device_id, None) is not None

    def list_all(self) -> List[Device]:
        with self._lock:
            return list(self._store.values())

    def replace_all(self, devices: Iterable[Device]) -> None:
        store = {}
        for device in devices:
            if device.device_id in store:
                raise MigrationValidationError(f"Duplicate device id {device.device_id}")
            store[device.device_id] = device
        with self._lock:
            self._store = store

    def __len__(self) -> int:
        return len(self._store)
