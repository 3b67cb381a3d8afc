"""
Read paths: paginated listing, history lookup and the export snapshot.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ExportRow:
    serial: str
    imei_1: str
    imei_2: str
    status: str
    created_at: datetime


class DeviceQueries:

    def __init__(self, devices, audit):
        self.devices = devices
        self.audit = audit

    def list_page(self, page=1, page_size=None, search=None):
        return self.devices.list(page, page_size, search=search)

    def get_history(self, serial):
        """Entries newest first; unknown or blank serials give an empty list"""
        serial = (serial or '').strip()
        if not serial:
            return []
        return self.audit.history_for(serial)

    def export_rows(self):
        return [
            ExportRow(
                serial=device.serial,
                imei_1=device.imei_1,
                imei_2=device.imei_2,
                status=device.current_status,
                created_at=device.created_at,
            )
            for device in self.devices.all()
        ]
