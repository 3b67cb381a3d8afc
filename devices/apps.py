from django.apps import AppConfig


class DevicesConfig(AppConfig):
    """
    Configuration for the Device Registry application.

    This app manages:
    - Devices (serial number, IMEI 1 / IMEI 2, current status, model tag)
    - Audit entries (one immutable record per status change)

    Features:
    - Duplicate detection by serial (case-insensitive) and IMEI
    - Two-step writes: state update, then audit append
    - CSV import/export
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'devices'
    verbose_name = 'Device Registry'

    def ready(self):
        """
        Import signal handlers when the app is ready.

        Signals handle:
        - Logging of device and audit entry lifecycle events
        - Warning when an audit entry disagrees with the device's status
        """
        import devices.signals  # noqa: F401
