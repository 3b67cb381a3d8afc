"""
Storage access for devices and their audit trail.

DeviceRepository owns the current-state records, AuditRepository owns the
append-only history. Both translate database failures into registry errors:
integrity violations become ConflictError, anything else PersistenceError.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from .conf import get_config
from .duplicates import IMEI, SERIAL, find_conflict
from .exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from .identity import normalize
from .models import AuditEntry, Device, DeviceImei

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('serial', 'imei_1', 'imei_2')


@dataclass
class DevicePage:
    items: List[Device] = field(default_factory=list)
    page: int = 1
    total_pages: int = 0
    total_count: int = 0


class AuditRepository:
    """Append-only audit log"""

    def append(self, device, serial_snapshot, status, note=''):
        now = timezone.now()
        latest = self.latest_for(device)
        # Per-device timestamps never go backwards
        if latest is not None and latest.timestamp > now:
            now = latest.timestamp
        try:
            return AuditEntry.objects.create(
                device=device,
                serial_snapshot=serial_snapshot,
                status=status,
                note=note if note is not None else '',
                timestamp=now,
            )
        except DatabaseError as e:
            raise PersistenceError(f"Could not append audit entry: {e}") from e

    def latest_for(self, device):
        return AuditEntry.objects.filter(device=device).order_by('-timestamp', '-id').first()

    def history_for(self, serial):
        key = normalize(serial)
        if not key:
            return []
        try:
            return list(
                AuditEntry.objects.filter(serial_key=key).order_by('-timestamp', '-id')
            )
        except DatabaseError as e:
            raise PersistenceError(f"Could not read history: {e}") from e

    def cascade_delete(self, device_id):
        # Bypasses AuditEntry.delete(), which refuses single-entry deletes
        deleted, _ = AuditEntry.objects.filter(device_id=device_id).delete()
        return deleted


class DeviceRepository:
    """Current-state device records"""

    def __init__(self, audit=None):
        self.audit = audit or AuditRepository()

    def get(self, device_id):
        try:
            return Device.objects.get(pk=device_id)
        except (Device.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Device {device_id} not found")
        except DatabaseError as e:
            raise PersistenceError(str(e)) from e

    def all(self):
        return Device.objects.order_by('-created_at', '-id')

    def create(self, serial, imei_1='', imei_2='', status=''):
        conflict = find_conflict(serial, imei_1, imei_2)
        if conflict:
            raise ConflictError(conflict.device, conflict.reason)

        device = Device(serial=serial, imei_1=imei_1 or '', imei_2=imei_2 or '', current_status=status)
        try:
            with transaction.atomic():
                device.save()
        except IntegrityError as e:
            raise self._conflict_from_integrity(device, e) from e
        except DatabaseError as e:
            raise PersistenceError(f"Could not save device: {e}") from e
        return device

    def update_status(self, device_id, status, **field_edits):
        device = self.get(device_id)

        unknown = set(field_edits) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")

        edits = {name: (value or '').strip() for name, value in field_edits.items() if value is not None}
        if 'serial' in edits and not edits['serial']:
            raise ValidationError("Serial Number is required", field='serial')

        changed = {name: value for name, value in edits.items() if getattr(device, name) != value}
        if changed:
            conflict = find_conflict(
                changed.get('serial', ''),
                changed.get('imei_1', ''),
                changed.get('imei_2', ''),
                exclude_pk=device.pk,
            )
            if conflict:
                raise ConflictError(conflict.device, conflict.reason)

        for name, value in changed.items():
            setattr(device, name, value)
        device.current_status = status

        try:
            with transaction.atomic():
                device.save()
        except IntegrityError as e:
            raise self._conflict_from_integrity(device, e) from e
        except DatabaseError as e:
            raise PersistenceError(f"Could not update device: {e}") from e
        return device

    def delete(self, device_id):
        device = self.get(device_id)
        try:
            with transaction.atomic():
                removed = self.audit.cascade_delete(device.pk)
                device.delete()
        except DatabaseError as e:
            raise PersistenceError(f"Could not delete device: {e}") from e
        logger.info(f"Deleted device {device.serial} and {removed} audit entries")

    def list(self, page=1, page_size=None, search=None):
        page_size = self._page_size(page_size)
        try:
            page = max(int(page), 1)
        except (TypeError, ValueError):
            page = 1

        try:
            queryset = self.search(search)
            total_count = queryset.count()
            offset = (page - 1) * page_size
            items = list(queryset[offset:offset + page_size]) if offset < total_count else []
        except DatabaseError as e:
            raise PersistenceError(f"Could not list devices: {e}") from e

        return DevicePage(
            items=items,
            page=page,
            total_pages=math.ceil(total_count / page_size),
            total_count=total_count,
        )

    def search(self, term=None):
        """Devices whose serial contains the term ignoring case, or whose IMEI contains it"""
        queryset = self.all()
        term = (term or '').strip()
        if not term:
            return queryset
        matches = Q(serial_key__contains=normalize(term)) | Q(imei_records__imei__contains=term)
        return queryset.filter(matches).distinct()

    def _page_size(self, page_size):
        default = get_config('DEFAULT_PAGE_SIZE')
        try:
            page_size = int(page_size) if page_size is not None else default
        except (TypeError, ValueError):
            page_size = default
        if page_size < 1:
            page_size = default
        return min(page_size, get_config('MAX_PAGE_SIZE'))

    def _conflict_from_integrity(self, device, error):
        """Unique constraint rejected the write after the duplicate check passed"""
        logger.warning(f"Unique constraint rejected device {device.serial}: {error}")
        others = Device.objects.exclude(pk=device.pk) if device.pk else Device.objects.all()
        existing = others.filter(serial_key=normalize(device.serial)).first()
        if existing:
            return ConflictError(existing, SERIAL)
        record = (
            DeviceImei.objects.filter(imei__in=device.imeis)
            .exclude(device_id=device.pk)
            .select_related('device')
            .first()
        )
        if record:
            return ConflictError(record.device, IMEI)
        return ConflictError(None, SERIAL)
