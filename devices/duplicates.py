"""
Duplicate detection for device registration.

A candidate collides with an existing device when its serial matches
ignoring case, or when either of its IMEIs matches either IMEI of an
existing device. Serial matches are reported first.
"""

from dataclasses import dataclass

from .identity import normalize
from .models import Device

SERIAL = 'serial'
IMEI = 'imei'


@dataclass(frozen=True)
class Conflict:
    device: Device
    reason: str


def find_conflict(serial, imei_1='', imei_2='', exclude_pk=None):
    """Return the first colliding Device with the reason, or None"""
    queryset = Device.objects.order_by('created_at', 'id')
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)

    key = normalize(serial)
    if key:
        existing = queryset.filter(serial_key=key).first()
        if existing:
            return Conflict(existing, SERIAL)

    imeis = [value.strip() for value in (imei_1 or '', imei_2 or '') if value and value.strip()]
    if imeis:
        existing = queryset.filter(imei_records__imei__in=imeis).distinct().first()
        if existing:
            return Conflict(existing, IMEI)

    return None
