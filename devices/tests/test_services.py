"""
Consistency coordinator tests: registration, updates, audit gaps, bulk import
"""

from unittest import mock

import pytest
from django.db import DatabaseError

from devices.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from devices.models import AuditEntry, Device
from devices.repositories import AuditRepository
from devices.services import RowStatus, WriteState

pytestmark = pytest.mark.django_db


class TestRegisterNew:

    def test_seed_entry_defaults(self, registry):
        result = registry.register_new("GRIPID100", "123456789012345", "", "In Stock", "")

        assert result.state == WriteState.COMMITTED
        device = result.device
        assert device.current_status == "In Stock"

        entries = list(AuditEntry.objects.filter(device=device))
        assert len(entries) == 1
        assert entries[0].status == "In Stock"
        assert entries[0].note == "Initial Entry"
        assert entries[0].serial_snapshot == "GRIPID100"

    def test_keeps_given_note(self, registry):
        result = registry.register_new("GRIPID1", status="In Stock", note="from truck 4")
        assert result.audit_entry.note == "from truck 4"

    def test_blank_status_uses_default(self, registry):
        result = registry.register_new("GRIPID1")
        assert result.device.current_status == "In Stock"

    def test_inputs_are_trimmed(self, registry):
        result = registry.register_new("  GRIPID1 ", imei_1=" 111 ")
        assert result.device.serial == "GRIPID1"
        assert result.device.imei_1 == "111"

    def test_missing_serial(self, registry):
        with pytest.raises(ValidationError):
            registry.register_new("   ", status="In Stock")
        assert not Device.objects.exists()

    def test_conflict_writes_nothing(self, registry):
        registry.register_new("GRIPID1", imei_1="111")
        with pytest.raises(ConflictError) as exc_info:
            registry.register_new("GRIPID2", imei_2="111")
        assert exc_info.value.reason == "imei"
        assert Device.objects.count() == 1
        assert AuditEntry.objects.count() == 1

    def test_no_two_devices_share_identity(self, registry):
        attempts = [
            ("GRIPID1", "111", ""),
            ("gripid1", "", ""),
            ("GRIPID2", "", "111"),
            ("GRIPID3", "222", "333"),
            ("GRIPID4", "333", ""),
            ("GripId3", "", ""),
            ("GRIPID5", "", ""),
        ]
        for serial, imei_1, imei_2 in attempts:
            try:
                registry.register_new(serial, imei_1, imei_2, "In Stock")
            except ConflictError:
                pass

        serials = [device.serial.upper() for device in Device.objects.all()]
        assert sorted(serials) == ["GRIPID1", "GRIPID3", "GRIPID5"]
        imeis = [imei for device in Device.objects.all() for imei in device.imeis]
        assert len(imeis) == len(set(imeis))

    def test_audit_gap_keeps_device(self, registry):
        with mock.patch.object(AuditRepository, "append", side_effect=PersistenceError("disk full")):
            result = registry.register_new("GRIPID1", status="In Stock")

        assert result.state == WriteState.COMMITTED_WITH_AUDIT_GAP
        assert result.has_audit_gap
        assert "disk full" in result.warning
        assert result.audit_entry is None
        assert Device.objects.filter(serial="GRIPID1").exists()
        assert not AuditEntry.objects.exists()

    def test_storage_failure_on_state_write(self, registry):
        with mock.patch.object(Device, "save", side_effect=DatabaseError("connection lost")):
            with pytest.raises(PersistenceError):
                registry.register_new("GRIPID1")


class TestRecordUpdate:

    def test_end_to_end_history(self, registry):
        created = registry.register_new("GRIPID100", "123456789012345", "", "In Stock", "")
        updated = registry.record_update(created.device.pk, "Shipped", "sent to site A")

        assert updated.state == WriteState.COMMITTED
        assert Device.objects.get(pk=created.device.pk).current_status == "Shipped"

        history = registry.queries.get_history("gripid100")
        assert [(entry.status, entry.note) for entry in history] == [
            ("Shipped", "sent to site A"),
            ("In Stock", "Initial Entry"),
        ]

    def test_one_entry_per_update(self, registry):
        device = registry.register_new("GRIPID1").device
        registry.record_update(device.pk, "Shipped", "")
        registry.record_update(device.pk, "Site B", None)

        entries = AuditEntry.objects.filter(device=device)
        assert entries.count() == 3
        latest = entries.first()
        assert latest.status == "Site B"
        assert latest.note == ""

    def test_empty_note_is_kept(self, registry):
        device = registry.register_new("GRIPID1").device
        result = registry.record_update(device.pk, "Shipped", "")
        assert result.audit_entry.note == ""

    def test_snapshot_uses_edited_serial(self, registry):
        device = registry.register_new("GRIPID1").device
        registry.record_update(device.pk, "Shipped", "", serial="GRIPID1-B")
        assert registry.queries.get_history("gripid1-b")[0].status == "Shipped"

    def test_unknown_device(self, registry):
        with pytest.raises(NotFoundError):
            registry.record_update(4040, "Shipped", "")
        assert not AuditEntry.objects.exists()

    def test_blank_status(self, registry):
        device = registry.register_new("GRIPID1").device
        with pytest.raises(ValidationError):
            registry.record_update(device.pk, "  ", "")

    def test_conflicting_edit_aborts(self, registry):
        registry.register_new("GRIPID1")
        device = registry.register_new("GRIPID2").device
        with pytest.raises(ConflictError):
            registry.record_update(device.pk, "Shipped", "", serial="gripid1")
        assert Device.objects.get(pk=device.pk).current_status == "In Stock"
        assert AuditEntry.objects.filter(device=device).count() == 1

    def test_audit_gap_keeps_status(self, registry):
        device = registry.register_new("GRIPID1").device
        with mock.patch.object(AuditRepository, "append", side_effect=DatabaseError("locked")):
            result = registry.record_update(device.pk, "Shipped", "")

        assert result.state == WriteState.COMMITTED_WITH_AUDIT_GAP
        assert Device.objects.get(pk=device.pk).current_status == "Shipped"
        assert AuditEntry.objects.filter(device=device).count() == 1


class TestDeleteDevice:

    def test_history_gone_after_delete(self, registry):
        device = registry.register_new("GRIPID1").device
        registry.record_update(device.pk, "Shipped", "")
        registry.delete_device(device.pk)

        assert registry.queries.get_history("GRIPID1") == []
        assert not Device.objects.exists()

    def test_other_devices_untouched(self, registry):
        doomed = registry.register_new("GRIPID1").device
        registry.register_new("GRIPID2")
        registry.delete_device(doomed.pk)
        assert len(registry.queries.get_history("GRIPID2")) == 1

    def test_unknown_device(self, registry):
        with pytest.raises(NotFoundError):
            registry.delete_device(4040)


class TestQueries:

    def test_history_lookup_ignores_case(self, registry):
        registry.register_new("GripID001")
        results = [
            [entry.pk for entry in registry.queries.get_history(serial)]
            for serial in ("gripid001", "GRIPID001", "GripID001", "  GRIPID001  ")
        ]
        assert results[0]
        assert all(result == results[0] for result in results)

    def test_history_non_ascii_serial(self, registry):
        registry.register_new("gripé1")
        with pytest.raises(ConflictError):
            registry.register_new("GRIPÉ1")

        history = registry.queries.get_history("GRIPÉ1")
        assert [entry.status for entry in history] == ["In Stock"]
        assert registry.queries.get_history("gripé1") == history
        assert Device.objects.count() == 1

    def test_blank_serial_history(self, registry):
        assert registry.queries.get_history("   ") == []

    def test_export_newest_first(self, registry):
        registry.register_new("GRIPID1", imei_1="111")
        registry.register_new("GRIPID2", status="Shipped")

        rows = registry.queries.export_rows()
        assert [row.serial for row in rows] == ["GRIPID2", "GRIPID1"]
        assert rows[0].status == "Shipped"
        assert rows[1].imei_1 == "111"
        assert rows[1].created_at is not None


class TestBulkImport:

    def test_mixed_batch(self, registry):
        registry.register_new("GRIPID1", imei_1="111")

        report = registry.bulk_import([
            {"SN": "GRIPID2", "IMEI1": "222"},
            {"sn_no": "gripid1"},
            {"IMEI1": "333"},
            {"Serial": "GRIPID3", "imei_2": "111"},
            {"sn": "GRIPID4", "Status": "Shipped", "Note": "pallet 9"},
        ])

        assert report.added == 2
        assert report.skipped == 2
        assert report.failed == 1
        assert [(log.row, log.status, log.reason) for log in report.logs] == [
            (2, RowStatus.SUCCESS, "Added"),
            (3, RowStatus.SKIPPED, "SN already exists"),
            (4, RowStatus.FAILED, "Missing Serial Number"),
            (5, RowStatus.SKIPPED, "IMEI already exists"),
            (6, RowStatus.SUCCESS, "Added"),
        ]

    def test_imported_device_defaults(self, registry):
        registry.bulk_import([{"SN": "GRIPID9"}])

        device = Device.objects.get(serial="GRIPID9")
        assert device.current_status == "In Stock"
        entry = AuditEntry.objects.get(device=device)
        assert entry.status == "In Stock"
        assert entry.note == "Imported"

    def test_row_values_used(self, registry):
        registry.bulk_import([{"sn": "GRIPID4", "Status": "Shipped", "Note": "pallet 9"}])
        entry = registry.queries.get_history("GRIPID4")[0]
        assert (entry.status, entry.note) == ("Shipped", "pallet 9")

    def test_later_rows_see_earlier_rows(self, registry):
        report = registry.bulk_import([
            {"SN": "GRIPID5", "IMEI1": "555"},
            {"SN": "GRIPID6", "IMEI2": "555"},
            {"SN": "gripid5"},
        ])
        assert report.added == 1
        assert report.skipped == 2

    def test_missing_serial_touches_nothing(self, registry):
        report = registry.bulk_import([{"IMEI1": "777", "Status": "In Stock"}])
        assert (report.added, report.skipped, report.failed) == (0, 0, 1)
        assert not Device.objects.exists()

    def test_storage_error_fails_row_only(self, registry):
        real_create = registry.devices.create

        def flaky_create(serial, *args, **kwargs):
            if serial == "BROKEN":
                raise PersistenceError("Could not save device: disk I/O error")
            return real_create(serial, *args, **kwargs)

        with mock.patch.object(registry.devices, "create", side_effect=flaky_create):
            report = registry.bulk_import([{"SN": "BROKEN"}, {"SN": "GRIPID7"}])

        assert report.added == 1
        assert report.failed == 1
        assert report.logs[0].reason.startswith("Could not save device")

    def test_audit_gap_is_a_warning(self, registry):
        with mock.patch.object(AuditRepository, "append", side_effect=PersistenceError("down")):
            report = registry.bulk_import([{"SN": "GRIPID8"}])

        assert report.added == 1
        assert len(report.warnings) == 1
        assert report.warnings[0].startswith("Row 2:")
