"""
Device Registry Application

Tracks physical devices (serial number plus up to two IMEIs) through their
lifecycle of statuses and locations, keeping an append-only audit trail of
every status change.

FEATURES:
- Case-insensitive serial identity, IMEI uniqueness across both IMEI fields
- Model tag (V6 / FAP) derived from the serial number
- Seed audit entry on every registration, one entry per status update
- CSV bulk import with per-row Success / Skipped / Failed log
- CSV export of the whole registry
- REST API endpoints, admin interface and management commands

MODELS:
- Device: current-state record, one per physical unit
- AuditEntry: immutable status change, owned by a Device

USAGE:
    from devices.services import get_registry

    registry = get_registry()
    result = registry.register_new("GRIPID100", imei_1="123456789012345",
                                   status="In Stock")
    registry.record_update(result.device.pk, "Shipped", note="sent to site A")

    registry.queries.get_history("gripid100")
"""

__version__ = '1.0.0'
