from django.core.management.base import BaseCommand, CommandError

from devices.services import get_registry
from devices.tabular import XLSX, detect_format, write_export, write_export_xlsx


class Command(BaseCommand):
    help = 'Export every device (newest first) to a CSV or .xlsx file, chosen by extension'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Destination file (.csv or .xlsx)')

    def handle(self, *args, **options):
        path = options['path']
        rows = get_registry().queries.export_rows()
        try:
            if detect_format(path) == XLSX:
                with open(path, 'wb') as stream:
                    stream.write(write_export_xlsx(rows))
            else:
                with open(path, 'w', newline='', encoding='utf-8') as stream:
                    write_export(rows, stream)
        except OSError as e:
            raise CommandError(f"Cannot write {path}: {e}")

        self.stdout.write(self.style.SUCCESS(f"✅ Exported {len(rows)} devices to {path}"))
