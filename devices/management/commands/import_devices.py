from django.core.management.base import BaseCommand, CommandError

from devices.exceptions import ValidationError
from devices.services import RowStatus, get_registry
from devices.tabular import read_rows


class Command(BaseCommand):
    help = 'Import devices from a CSV or .xlsx file (duplicates are skipped, rows without SN fail)'

    def add_arguments(self, parser):
        parser.add_argument('path', help='CSV or .xlsx file with a header row')

    def handle(self, *args, **options):
        path = options['path']
        try:
            with open(path, 'rb') as source:
                rows = read_rows(source)
        except OSError as e:
            raise CommandError(f"Cannot open {path}: {e}")
        except ValidationError as e:
            raise CommandError(e.message)

        self.stdout.write(self.style.WARNING(f'Importing {len(rows)} rows from {path}...'))
        report = get_registry().bulk_import(rows)

        for outcome in report.logs:
            line = f"Row {outcome.row}: {outcome.status} - {outcome.reason}"
            if outcome.serial:
                line += f" ({outcome.serial})"
            if outcome.status == RowStatus.SUCCESS:
                self.stdout.write(self.style.SUCCESS(f"✓ {line}"))
            elif outcome.status == RowStatus.SKIPPED:
                self.stdout.write(f"- {line}")
            else:
                self.stdout.write(self.style.ERROR(f"✗ {line}"))

        for warning in report.warnings:
            self.stdout.write(self.style.WARNING(f"⚠️  {warning}"))

        # Summary
        self.stdout.write(self.style.SUCCESS('\n' + '='*60))
        self.stdout.write(self.style.SUCCESS('SUMMARY:'))
        self.stdout.write(self.style.SUCCESS('='*60))
        self.stdout.write(f"Added: {report.added}")
        self.stdout.write(f"Skipped: {report.skipped}")
        self.stdout.write(f"Failed: {report.failed}")
        self.stdout.write(self.style.SUCCESS('='*60))
