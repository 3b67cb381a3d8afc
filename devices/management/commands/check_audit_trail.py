from django.core.management.base import BaseCommand

from devices.models import Device
from devices.repositories import AuditRepository

REPAIR_NOTE = "Audit trail reconciled"


class Command(BaseCommand):
    help = "List devices whose current status is not backed by their latest audit entry"

    def add_arguments(self, parser):
        parser.add_argument(
            '--repair', action='store_true',
            help='Append an audit entry with the current status for each gap found',
        )

    def handle(self, *args, **options):
        audit = AuditRepository()
        gaps = 0
        repaired = 0

        for device in Device.objects.order_by('created_at', 'id'):
            latest = audit.latest_for(device)
            if latest is not None and latest.status == device.current_status:
                continue

            gaps += 1
            recorded = latest.status if latest else 'no entries'
            self.stdout.write(self.style.WARNING(
                f"⚠️  {device.serial}: status '{device.current_status}', audit trail: {recorded}"
            ))

            if options['repair']:
                audit.append(device, device.serial, device.current_status, REPAIR_NOTE)
                repaired += 1

        if not gaps:
            self.stdout.write(self.style.SUCCESS('✅ Audit trail is consistent'))
            return

        self.stdout.write(f"Devices with audit gaps: {gaps}")
        if options['repair']:
            self.stdout.write(self.style.SUCCESS(f"Repaired: {repaired}"))
