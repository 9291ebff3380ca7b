"""Flat CSV export of the device collection."""

import csv
import io
from typing import Iterable, List, Optional

from migration_engine.core.models import Device, Phase, Placement


EXPORT_COLUMNS = [
    "Category",
    "Code",
    "Name",
    "Brand",
    "Model",
    "Ports",
    "Size",
    "Mgmt IP",
    "Serial",
    "Before Rack",
    "Before Start",
    "Before End",
    "After Rack",
    "After Start",
    "After End",
    "Mounted",
    "Cabled",
    "Powered",
    "Tested",
]


def _placement_cells(placement: Optional[Placement]) -> List[str]:
    if placement is None:
        return ["", "", ""]
    return [placement.rack_id, str(placement.start), str(placement.end)]


def _flag(value: bool) -> str:
    return "true" if value else "false"


def device_row(device: Device) -> List[str]:
    """One export row, in EXPORT_COLUMNS order."""
    return [
        device.category.value,
        device.code,
        device.name,
        device.brand,
        device.model,
        str(device.ports),
        str(device.size),
        device.mgmt_ip or "",
        device.serial or "",
        *_placement_cells(device.placement(Phase.BEFORE)),
        *_placement_cells(device.placement(Phase.AFTER)),
        _flag(device.status.mounted),
        _flag(device.status.cabled),
        _flag(device.status.powered),
        _flag(device.status.tested),
    ]


def export_devices_csv(devices: Iterable[Device]) -> str:
    """
    Render devices as CSV: header plus one row per device.

    Fields containing a comma, a quote or a line break are quoted and
    internal quotes are doubled. Rows end with CRLF.
    """
    output = io.StringIO()
    writer = csv.writer(
        output,
        delimiter=",",
        quotechar='"',
        doublequote=True,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\r\n",
    )
    writer.writerow(EXPORT_COLUMNS)
    for device in devices:
        writer.writerow(device_row(device))
    return output.getvalue()
