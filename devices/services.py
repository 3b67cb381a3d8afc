"""
Write coordination for the device registry.

Every write is two steps: update the device record, then append an audit
entry. Both run inside one transaction so readers never see a half-done
write, but the append runs in its own savepoint: if it fails, the state
change is kept and the write is reported as COMMITTED_WITH_AUDIT_GAP with a
warning instead of being rolled back.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.db import DatabaseError, transaction

from .conf import get_config
from .duplicates import SERIAL, find_conflict
from .exceptions import ConflictError, GripIDError, PersistenceError, RowError, ValidationError
from .importing import extract_row
from .models import AuditEntry, Device
from .queries import DeviceQueries
from .repositories import AuditRepository, DeviceRepository

logger = logging.getLogger(__name__)


class WriteState:
    PENDING = 'pending'
    COMMITTED = 'committed'
    COMMITTED_WITH_AUDIT_GAP = 'committed_with_audit_gap'
    ABORTED = 'aborted'


@dataclass
class WriteResult:
    state: str = WriteState.PENDING
    device: Optional[Device] = None
    audit_entry: Optional[AuditEntry] = None
    warning: str = ''

    @property
    def committed(self):
        return self.state in (WriteState.COMMITTED, WriteState.COMMITTED_WITH_AUDIT_GAP)

    @property
    def has_audit_gap(self):
        return self.state == WriteState.COMMITTED_WITH_AUDIT_GAP


class WriteOperation:
    """
    One state write followed by one audit append.

    run() moves the operation from PENDING to COMMITTED,
    COMMITTED_WITH_AUDIT_GAP or ABORTED. Errors from the state write abort the
    operation and propagate; errors from the append only mark the gap.
    """

    def __init__(self, audit, description):
        self.audit = audit
        self.description = description
        self.result = WriteResult()

    @property
    def state(self):
        return self.result.state

    def run(self, write_state, status, note):
        try:
            with transaction.atomic():
                device = write_state()
                self.result.device = device
                try:
                    with transaction.atomic():
                        self.result.audit_entry = self.audit.append(device, device.serial, status, note)
                except (PersistenceError, DatabaseError) as e:
                    self.result.state = WriteState.COMMITTED_WITH_AUDIT_GAP
                    self.result.warning = (
                        f"{self.description} saved for {device.serial}, "
                        f"but the audit entry could not be written: {e}"
                    )
                    logger.warning(f"[AUDIT GAP] {self.result.warning}")
                else:
                    self.result.state = WriteState.COMMITTED
        except GripIDError:
            self.result.state = WriteState.ABORTED
            raise
        except DatabaseError as e:
            self.result.state = WriteState.ABORTED
            raise PersistenceError(str(e)) from e
        return self.result


# ============================================
# BULK IMPORT REPORT
# ============================================

class RowStatus:
    SUCCESS = 'Success'
    SKIPPED = 'Skipped'
    FAILED = 'Failed'


@dataclass
class RowOutcome:
    row: int
    status: str
    reason: str
    serial: str = ''


@dataclass
class ImportReport:
    added: int = 0
    skipped: int = 0
    failed: int = 0
    logs: List[RowOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def record(self, outcome):
        self.logs.append(outcome)
        if outcome.status == RowStatus.SUCCESS:
            self.added += 1
        elif outcome.status == RowStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


def skip_reason(conflict_reason):
    if conflict_reason == SERIAL:
        return "SN already exists"
    return "IMEI already exists"


# ============================================
# REGISTRY SERVICE
# ============================================

class DeviceRegistryService:
    """Coordinates device writes with their audit entries"""

    def __init__(self, devices=None, audit=None):
        self.audit = audit or AuditRepository()
        self.devices = devices or DeviceRepository(audit=self.audit)
        self.queries = DeviceQueries(self.devices, self.audit)

    def register_new(self, serial, imei_1='', imei_2='', status='', note=''):
        serial = (serial or '').strip()
        imei_1 = (imei_1 or '').strip()
        imei_2 = (imei_2 or '').strip()
        status = (status or '').strip() or get_config('DEFAULT_STATUS')
        note = note or get_config('INITIAL_NOTE')

        if not serial:
            raise ValidationError("Serial Number is required", field='serial')

        conflict = find_conflict(serial, imei_1, imei_2)
        if conflict:
            logger.info(f"Rejected duplicate device {serial} ({conflict.reason})")
            raise ConflictError(conflict.device, conflict.reason)

        operation = WriteOperation(self.audit, "Device")
        result = operation.run(
            lambda: self.devices.create(serial, imei_1, imei_2, status),
            status,
            note,
        )
        logger.info(f"Registered device {serial} - Status: {status}")
        return result

    def record_update(self, device_id, status, note='', **field_edits):
        status = (status or '').strip()
        if not status:
            raise ValidationError("Status is required", field='status')

        operation = WriteOperation(self.audit, "Status update")
        result = operation.run(
            lambda: self.devices.update_status(device_id, status, **field_edits),
            status,
            note if note is not None else '',
        )
        logger.info(f"Updated device {result.device.serial} - Status: {status}")
        return result

    def delete_device(self, device_id):
        self.devices.delete(device_id)

    def bulk_import(self, rows):
        """
        Import rows in order, one at a time.

        A row never aborts the batch: missing serials are Failed, duplicates
        are Skipped, storage errors on a row are Failed with the message.
        """
        report = ImportReport()
        offset = get_config('IMPORT_ROW_OFFSET')

        for index, raw in enumerate(rows):
            row_number = index + offset
            try:
                outcome = self._import_row(row_number, raw, report)
            except RowError as e:
                outcome = RowOutcome(row=e.row, status=RowStatus.FAILED, reason=e.message)
            report.record(outcome)

        logger.info(
            f"Import complete - Added: {report.added}, Skipped: {report.skipped}, "
            f"Failed: {report.failed}"
        )
        return report

    def _import_row(self, row_number, raw, report):
        row = extract_row(raw)
        if not row.serial:
            raise RowError(row_number, "Missing Serial Number")

        try:
            result = self.register_new(
                row.serial,
                row.imei_1,
                row.imei_2,
                status=row.status or get_config('DEFAULT_STATUS'),
                note=row.note or get_config('IMPORT_NOTE'),
            )
        except ConflictError as e:
            return RowOutcome(
                row=row_number, serial=row.serial, status=RowStatus.SKIPPED,
                reason=skip_reason(e.reason),
            )
        except PersistenceError as e:
            logger.error(f"Import row {row_number} ({row.serial}) failed: {e.message}")
            return RowOutcome(
                row=row_number, serial=row.serial, status=RowStatus.FAILED, reason=e.message,
            )

        if result.has_audit_gap:
            report.warnings.append(f"Row {row_number}: {result.warning}")
        return RowOutcome(row=row_number, serial=row.serial, status=RowStatus.SUCCESS, reason="Added")


def get_registry():
    """Registry service wired to the default repositories"""
    return DeviceRegistryService()
