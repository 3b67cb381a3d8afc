"""
Spreadsheet reading and writing for bulk import and export.

Uploads may be CSV or Excel (.xlsx). The format is taken from the file name,
then the content type, and falls back to CSV.
"""

import csv
import io
import os
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .conf import get_config
from .exceptions import ValidationError

EXPORT_HEADERS = ['SN', 'IMEI 1', 'IMEI 2', 'Status', 'Added On']
EXPORT_SHEET = 'Inventory'

CSV = 'csv'
XLSX = 'xlsx'
CONTENT_TYPES = {
    CSV: 'text/csv',
    XLSX: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}


def detect_format(filename=None, content_type=None):
    extension = os.path.splitext(filename or '')[1].lower().lstrip('.')
    if extension in CONTENT_TYPES:
        return extension
    if content_type:
        for file_type, known in CONTENT_TYPES.items():
            if content_type.split(';')[0].strip().lower() == known:
                return file_type
    return CSV


def export_filename(file_type=CSV):
    return f"{get_config('EXPORT_FILENAME')}.{file_type}"


def read_rows(source, filename=None, content_type=None):
    """
    Read an upload into a list of header -> value dicts.

    Accepts a file object (text or bytes) or a string/bytes payload. When no
    filename is given the file object's name is used.
    """
    if filename is None:
        filename = getattr(source, 'name', None)
    if content_type is None:
        content_type = getattr(source, 'content_type', None)
    content = source.read() if hasattr(source, 'read') else source

    if detect_format(filename, content_type) == XLSX:
        return read_xlsx_rows(content)
    return read_csv_rows(content)


def read_csv_rows(content):
    """The first row is the header; blank lines are dropped"""
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8-sig')
        except UnicodeDecodeError:
            raise ValidationError("File must be UTF-8 encoded CSV", field='file')
    content = content.lstrip('\ufeff')

    try:
        reader = csv.DictReader(io.StringIO(content))
        if not reader.fieldnames:
            raise ValidationError("File has no header row", field='file')
        rows = list(reader)
    except csv.Error as e:
        raise ValidationError(f"Could not read CSV: {e}", field='file')
    return rows


def read_xlsx_rows(content):
    """Rows of the first worksheet keyed by its header row; empty rows are dropped"""
    if isinstance(content, str):
        raise ValidationError("Excel upload must be binary", field='file')
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (BadZipFile, InvalidFileException, KeyError, OSError) as e:
        raise ValidationError(f"Could not read Excel file: {e}", field='file')

    try:
        values = workbook.worksheets[0].iter_rows(values_only=True)
        header = next(values, None)
        if not header or all(cell is None for cell in header):
            raise ValidationError("File has no header row", field='file')
        keys = ['' if cell is None else str(cell).strip() for cell in header]

        rows = []
        for record in values:
            if all(cell is None or cell == '' for cell in record):
                continue
            rows.append({key: cell for key, cell in zip(keys, record) if key})
    finally:
        workbook.close()
    return rows


def _added_on(row):
    return row.created_at.strftime('%Y-%m-%d %H:%M:%S') if row.created_at else ''


def write_export(rows, stream):
    """Write export rows (see DeviceQueries.export_rows) as CSV"""
    writer = csv.writer(stream)
    writer.writerow(EXPORT_HEADERS)
    for row in rows:
        writer.writerow([row.serial, row.imei_1, row.imei_2, row.status, _added_on(row)])
    return stream


def write_export_xlsx(rows):
    """Export rows as an .xlsx workbook, returned as bytes"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = EXPORT_SHEET
    sheet.append(EXPORT_HEADERS)
    for row in rows:
        cells = [row.serial, row.imei_1, row.imei_2, row.status, _added_on(row)]
        # Blank values stay empty cells rather than empty strings
        sheet.append([cell or None for cell in cells])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
