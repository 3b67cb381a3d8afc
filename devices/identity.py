"""
Serial number identity helpers.

Serials are stored with the casing they were scanned or typed with; every
comparison goes through normalize() instead.
"""

from django.db import models


class ModelTag(models.TextChoices):
    V6 = 'V6', 'V6'
    FAP = 'FAP', 'FAP'


# Checked in order, first marker found wins
MODEL_MARKERS = (
    ('V6', ModelTag.V6),
    ('FAP', ModelTag.FAP),
)


def normalize(serial):
    """Canonical comparison key for a serial number"""
    if serial is None:
        return ''
    return str(serial).strip().upper()


def classify_model(serial):
    """Return the ModelTag whose marker appears in the serial, or None"""
    key = normalize(serial)
    for marker, tag in MODEL_MARKERS:
        if marker in key:
            return tag
    return None
