from django.db import IntegrityError, models, transaction
from django.utils import timezone

from .exceptions import AuditImmutableError
from .identity import ModelTag, classify_model, normalize


class Device(models.Model):
    """
    Current-state record of one physical unit.

    serial_key holds the normalized serial and carries the uniqueness
    constraint. Every non-blank IMEI is mirrored into DeviceImei, whose unique
    column keeps an IMEI on one device only, whichever field it sits in.
    """

    serial = models.CharField(max_length=100, help_text='Serial number (SN) as scanned')
    serial_key = models.CharField(max_length=100, unique=True, editable=False)
    imei_1 = models.CharField(max_length=32, blank=True, default='', verbose_name='IMEI 1')
    imei_2 = models.CharField(max_length=32, blank=True, default='', verbose_name='IMEI 2')
    current_status = models.CharField(max_length=255, blank=True, default='')
    model_tag = models.CharField(
        max_length=10, choices=ModelTag.choices, blank=True, default='', editable=False,
        help_text='Derived from the serial number'
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.serial} ({self.current_status or 'no status'})"

    def save(self, *args, **kwargs):
        self.serial_key = normalize(self.serial)
        self.model_tag = classify_model(self.serial) or ''
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'serial' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'serial_key', 'model_tag'}

        adding = self._state.adding
        try:
            with transaction.atomic():
                super().save(*args, **kwargs)
                self._sync_imeis()
        except IntegrityError:
            if adding:
                self.pk = None
                self._state.adding = True
            raise

    def _sync_imeis(self):
        wanted = set(self.imeis)
        records = DeviceImei.objects.filter(device=self)
        records.exclude(imei__in=wanted).delete()
        existing = set(records.values_list('imei', flat=True))
        DeviceImei.objects.bulk_create(
            [DeviceImei(device=self, imei=imei) for imei in sorted(wanted - existing)]
        )

    @property
    def imeis(self):
        return [value for value in (self.imei_1, self.imei_2) if value]


class DeviceImei(models.Model):
    """Registry-wide IMEI index, one row per non-blank IMEI of a device"""

    device = models.ForeignKey(Device, on_delete=models.CASCADE, related_name='imei_records')
    imei = models.CharField(max_length=32, unique=True)

    class Meta:
        verbose_name = 'IMEI'
        verbose_name_plural = 'IMEIs'

    def __str__(self):
        return self.imei


class AuditEntry(models.Model):
    """Immutable record of one status change of a device"""

    device = models.ForeignKey(Device, on_delete=models.CASCADE, related_name='audit_entries')
    serial_snapshot = models.CharField(max_length=100)
    serial_key = models.CharField(max_length=100, db_index=True, editable=False)
    status = models.CharField(max_length=255)
    note = models.TextField(blank=True, default='')
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-timestamp', '-id']
        verbose_name = 'audit entry'
        verbose_name_plural = 'audit entries'

    def __str__(self):
        return f"{self.serial_snapshot}: {self.status} @ {self.timestamp:%Y-%m-%d %H:%M:%S}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AuditImmutableError()
        self.serial_key = normalize(self.serial_snapshot)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditImmutableError()
