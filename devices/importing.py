"""
Row extraction for bulk imports.

Spreadsheets in the field use different column headers for the same data.
Each field has an ordered list of accepted headers; the first one holding a
non-empty value wins.
"""

from dataclasses import dataclass

FIELD_ALIASES = {
    'serial': ('sn_no', 'SN', 'Serial', 'sn', 'serial', 'Serial Number', 'SN No'),
    'imei_1': ('imei_1', 'IMEI1', 'imei1', 'IMEI 1', 'IMEI_1'),
    'imei_2': ('imei_2', 'IMEI2', 'imei2', 'IMEI 2', 'IMEI_2'),
    'status': ('status', 'Status', 'current_status'),
    'note': ('note', 'Note', 'notes', 'Notes'),
}


@dataclass(frozen=True)
class ImportRow:
    serial: str
    imei_1: str = ''
    imei_2: str = ''
    status: str = ''
    note: str = ''


def cell_text(value):
    """Render a spreadsheet cell as trimmed text"""
    if value is None:
        return ''
    # Numeric IMEI cells come back as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def first_value(row, aliases):
    for alias in aliases:
        text = cell_text(row.get(alias))
        if text:
            return text
    return ''


def extract_row(row):
    """Build an ImportRow from a header -> value mapping"""
    row = {(key.strip() if isinstance(key, str) else key): value for key, value in row.items()}
    return ImportRow(**{
        name: first_value(row, aliases) for name, aliases in FIELD_ALIASES.items()
    })
