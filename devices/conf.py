from django.conf import settings

DEFAULTS = {
    'DEFAULT_PAGE_SIZE': 50,
    'MAX_PAGE_SIZE': 500,
    'DEFAULT_STATUS': 'In Stock',
    'INITIAL_NOTE': 'Initial Entry',
    'IMPORT_NOTE': 'Imported',
    'IMPORT_ROW_OFFSET': 2,
    'EXPORT_FILENAME': 'GripID_Inventory',
}


def get_config(key):
    """Read a value from settings.GRIPID_CONFIG, falling back to the defaults"""
    overrides = getattr(settings, 'GRIPID_CONFIG', {})
    if key in overrides:
        return overrides[key]
    return DEFAULTS[key]
