"""Pydantic schemas for device input, partial updates and snapshot records.

All validators here are lenient: they repair values field by field instead of
rejecting the record, so drafts and seed data never fail as a whole.
"""

import logging
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from migration_engine.core.models import (
    Device,
    DeviceCategory,
    MigrationStatus,
    Placement,
)


logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off", ""}


# ============================================
# Coercion helpers
# ============================================

def coerce_category(value: Any) -> DeviceCategory:
    if isinstance(value, DeviceCategory):
        return value
    if isinstance(value, str):
        for category in DeviceCategory:
            if category.value.lower() == value.strip().lower():
                return category
    if value is not None:
        logger.warning(f"Unknown device category {value!r}, using Other")
    return DeviceCategory.OTHER


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    logger.warning(f"Unparsable flag value {value!r}, using False")
    return False


def coerce_int(value: Any, default: Optional[int]) -> Optional[int]:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        if value is not None:
            logger.warning(f"Unparsable number {value!r}, using {default}")
        return default


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def coerce_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


# ============================================
# Device field rules (shared by drafts and updates)
# ============================================

class DeviceFieldRules(BaseModel):
    """Lenient validators for descriptive device fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("category", mode="before", check_fields=False)
    @classmethod
    def _category(cls, value):
        return coerce_category(value)

    @field_validator("code", "name", "brand", "model", mode="before", check_fields=False)
    @classmethod
    def _text(cls, value):
        return coerce_text(value)

    @field_validator("mgmt_ip", "serial", "port_mapping", mode="before", check_fields=False)
    @classmethod
    def _optional_text(cls, value):
        return coerce_optional_text(value)

    @field_validator("ports", mode="before", check_fields=False)
    @classmethod
    def _ports(cls, value):
        return max(0, coerce_int(value, 0))

    @field_validator("size", mode="before", check_fields=False)
    @classmethod
    def _size(cls, value):
        # clamping to rack capacity happens in the service
        return coerce_int(value, 1)


class DeviceDraft(DeviceFieldRules):
    """Input for adding a device."""

    category: DeviceCategory = DeviceCategory.OTHER
    code: str = ""
    name: str = ""
    brand: str = ""
    model: str = ""
    ports: int = 0
    size: int = 1

    mgmt_ip: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("mgmt_ip", "mgmtIp", "ip")
    )
    serial: Optional[str] = None
    port_mapping: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("port_mapping", "portMapping")
    )


class DeviceUpdate(DeviceFieldRules):
    """Partial update. Only fields that were explicitly provided are merged."""

    category: Optional[DeviceCategory] = None
    code: Optional[str] = None
    name: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    ports: Optional[int] = None
    size: Optional[int] = None

    mgmt_ip: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("mgmt_ip", "mgmtIp", "ip")
    )
    serial: Optional[str] = None
    port_mapping: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("port_mapping", "portMapping")
    )

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ============================================
# Snapshot records
# ============================================

class PlacementRecord(BaseModel):
    """Serialized placement record. `end` is informational, always recomputed on load."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rack_id: str = Field(validation_alias=AliasChoices("rack_id", "rack", "rackId"))
    start: int
    end: Optional[int] = None

    @classmethod
    def from_placement(cls, placement: Optional[Placement]) -> Optional["PlacementRecord"]:
        if placement is None:
            return None
        return cls(rack_id=placement.rack_id, start=placement.start, end=placement.end)


class StatusRecord(BaseModel):
    """Serialized migration status."""

    model_config = ConfigDict(extra="ignore")

    mounted: bool = False
    cabled: bool = False
    powered: bool = False
    tested: bool = False

    @field_validator("mounted", "cabled", "powered", "tested", mode="before")
    @classmethod
    def _flag(cls, value):
        return coerce_bool(value)

    def to_domain(self) -> MigrationStatus:
        return MigrationStatus(
            mounted=self.mounted,
            cabled=self.cabled,
            powered=self.powered,
            tested=self.tested,
        )


class DeviceSnapshotRecord(DeviceDraft):
    """One device as stored in a snapshot, and as accepted when seeding."""

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "device_id"))
    before: Optional[PlacementRecord] = None
    after: Optional[PlacementRecord] = None
    status: StatusRecord = Field(default_factory=StatusRecord)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value):
        return coerce_optional_text(value)

    @field_validator("before", "after", mode="before")
    @classmethod
    def _placement(cls, value):
        if value is None or isinstance(value, PlacementRecord):
            return value
        if not isinstance(value, dict):
            logger.warning(f"Dropping malformed placement record {value!r}")
            return None
        rack_id = value.get("rack_id", value.get("rack", value.get("rackId")))
        start = coerce_int(value.get("start"), 0)
        if not rack_id or start < 1:
            logger.warning(f"Dropping incomplete placement record {value!r}")
            return None
        end = value.get("end")
        return {
            "rack_id": str(rack_id),
            "start": start,
            "end": coerce_int(end, None) if end is not None else None,
        }

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        if value is None:
            return {}
        if isinstance(value, (dict, StatusRecord)):
            return value
        logger.warning(f"Dropping malformed status record {value!r}")
        return {}

    # -------------------------
    # MAPPING
    # -------------------------

    @classmethod
    def from_device(cls, device: Device) -> "DeviceSnapshotRecord":
        """Convert domain model to snapshot record."""
        return cls(
            id=device.device_id,
            category=device.category,
            code=device.code,
            name=device.name,
            brand=device.brand,
            model=device.model,
            ports=device.ports,
            size=device.size,
            mgmt_ip=device.mgmt_ip,
            serial=device.serial,
            port_mapping=device.port_mapping,
            before=PlacementRecord.from_placement(device.before),
            after=PlacementRecord.from_placement(device.after),
            status=StatusRecord(**vars(device.status)),
        )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def device_to_record(device: Device) -> dict[str, Any]:
    """JSON-ready dict of a device, by value."""
    return DeviceSnapshotRecord.from_device(device).to_json()
