"""
Error taxonomy for the device registry and its mapping onto API responses.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class GripIDError(Exception):
    """Base class for registry errors"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = 'error'

    def __init__(self, message=None):
        self.message = message or self.__class__.__doc__
        super().__init__(self.message)


class ConflictError(GripIDError):
    """A device with this serial number or IMEI already exists"""

    status_code = status.HTTP_409_CONFLICT
    code = 'conflict'

    def __init__(self, device, reason, message=None):
        self.device = device
        self.reason = reason
        if message is None:
            if reason == 'serial':
                message = "A device with this Serial Number already exists!"
            else:
                message = "A device with this IMEI already exists!"
        super().__init__(message)


class NotFoundError(GripIDError):
    """Device not found"""

    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'


class ValidationError(GripIDError):
    """Invalid device data"""

    code = 'invalid'

    def __init__(self, message=None, field=None):
        self.field = field
        super().__init__(message)


class RowError(GripIDError):
    """A bulk import row could not be processed"""

    code = 'row_error'

    def __init__(self, row, message):
        self.row = row
        super().__init__(message)


class PersistenceError(GripIDError):
    """Storage is unavailable"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'storage_unavailable'


class AuditImmutableError(GripIDError):
    """Audit entries cannot be changed or deleted individually"""

    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    code = 'audit_immutable'


def api_exception_handler(exc, context):
    """
    REST framework exception handler.

    Registry errors become {"status": "error", "message", "code"} bodies with
    the error's HTTP status; everything else goes to the default handler.
    """
    if not isinstance(exc, GripIDError):
        return exception_handler(exc, context)

    body = {
        'status': 'error',
        'message': exc.message,
        'code': exc.code,
    }
    if isinstance(exc, ConflictError):
        body['reason'] = exc.reason
        body['existing_id'] = exc.device.pk if exc.device is not None else None
    if isinstance(exc, ValidationError) and exc.field:
        body['field'] = exc.field

    if isinstance(exc, PersistenceError):
        logger.error(f"Storage error: {exc.message}")

    return Response(body, status=exc.status_code)
