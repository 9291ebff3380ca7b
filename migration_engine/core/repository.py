# migration_engine/core/repository.py

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from migration_engine.core.models import Device


class DeviceRepository(ABC):
    """
    Storage contract for the device collection.
    """

    @abstractmethod
    def add(self, device: Device) -> None:
        """
        Append a new device.
        Must fail if device_id already exists.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, device_id: str) -> Optional[Device]:
        """
        Fetch device by ID.
        Returns None if not found.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, device: Device) -> None:
        """
        Store a modified device in place, keeping its position.
        """
        raise NotImplementedError

    @abstractmethod
    def remove(self, device_id: str) -> bool:
        """
        Remove a device.
        Returns False if it was not present.
        """
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> List[Device]:
        """
        All devices in insertion order.
        """
        raise NotImplementedError

    @abstractmethod
    def replace_all(self, devices: Iterable[Device]) -> None:
        """
        Swap the whole collection, used when seeding from a snapshot.
        """
        raise NotImplementedError
