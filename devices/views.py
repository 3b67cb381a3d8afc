import logging

from django.http import HttpResponse
from rest_framework import status, viewsets
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import ValidationError
from .serializers import (
    AuditEntrySerializer,
    DeviceCreateSerializer,
    DeviceSerializer,
    DeviceUpdateSerializer,
    ImportReportSerializer,
)
from .services import get_registry
from .tabular import (
    CONTENT_TYPES,
    CSV,
    XLSX,
    export_filename,
    read_rows,
    write_export,
    write_export_xlsx,
)

logger = logging.getLogger(__name__)


def write_response(result, status_code=status.HTTP_200_OK):
    """Device payload, plus a warning when the audit entry is missing"""
    data = DeviceSerializer(result.device).data
    if result.has_audit_gap:
        data = {**data, 'warning': result.warning}
    return Response(data, status=status_code)


# ====================================
# REST API VIEWSETS
# ====================================

class DeviceViewSet(viewsets.ViewSet):
    """API endpoint for devices"""

    lookup_value_regex = r'\d+'

    def list(self, request):
        """Paginated device list, newest first, optionally filtered by ?search="""
        registry = get_registry()
        page = registry.queries.list_page(
            request.query_params.get('page', 1),
            request.query_params.get('limit'),
            search=request.query_params.get('search'),
        )
        return Response({
            'data': DeviceSerializer(page.items, many=True).data,
            'current_page': page.page,
            'total_pages': page.total_pages,
            'total_devices': page.total_count,
        })

    def retrieve(self, request, pk=None):
        device = get_registry().devices.get(pk)
        return Response(DeviceSerializer(device).data)

    def create(self, request):
        """Manual entry - rejects duplicate serials and IMEIs"""
        serializer = DeviceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = get_registry().register_new(**serializer.validated_data)
        return write_response(result, status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        serializer = DeviceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = get_registry().record_update(
            pk,
            serializer.validated_data['status'],
            note=serializer.validated_data.get('note'),
            **serializer.field_edits(),
        )
        return write_response(result)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        get_registry().delete_device(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DeviceHistoryView(APIView):
    """Status history for a serial number, newest first"""

    def get(self, request, serial):
        entries = get_registry().queries.get_history(serial)
        return Response(AuditEntrySerializer(entries, many=True).data)


class DeviceImportView(APIView):
    """Bulk import from an uploaded CSV or Excel file"""

    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        upload = request.FILES.get('file')
        if upload is None:
            raise ValidationError("No file uploaded", field='file')

        logger.info(f"Bulk import of {upload.name} by {request.user}")
        rows = read_rows(upload, filename=upload.name, content_type=upload.content_type)
        report = get_registry().bulk_import(rows)

        return Response({
            'message': "Import Complete",
            **ImportReportSerializer(report).data,
        })


class DeviceExportView(APIView):
    """Whole registry as an Excel download, or CSV with ?file_type=csv"""

    def get(self, request):
        file_type = request.query_params.get('file_type', XLSX).lower()
        if file_type not in CONTENT_TYPES:
            raise ValidationError(f"Unsupported file type: {file_type}", field='file_type')

        rows = get_registry().queries.export_rows()
        response = HttpResponse(content_type=CONTENT_TYPES[file_type])
        response['Content-Disposition'] = f'attachment; filename="{export_filename(file_type)}"'
        if file_type == CSV:
            write_export(rows, response)
        else:
            response.write(write_export_xlsx(rows))
        return response
