from rest_framework import serializers

from .models import AuditEntry, Device


class DeviceSerializer(serializers.ModelSerializer):
    """Serializer for Device model"""

    model_tag_display = serializers.CharField(source='get_model_tag_display', read_only=True)

    class Meta:
        model = Device
        fields = [
            'id',
            'serial',
            'imei_1',
            'imei_2',
            'current_status',
            'model_tag',
            'model_tag_display',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class AuditEntrySerializer(serializers.ModelSerializer):
    """Serializer for audit entries"""

    device_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = AuditEntry
        fields = ['id', 'device_id', 'serial_snapshot', 'status', 'note', 'timestamp']
        read_only_fields = fields


class DeviceCreateSerializer(serializers.Serializer):
    """Input for manual device registration"""

    serial = serializers.CharField(max_length=100, allow_blank=True, trim_whitespace=True)
    imei_1 = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')
    imei_2 = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')
    status = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    note = serializers.CharField(required=False, allow_blank=True, default='')

    def to_internal_value(self, data):
        # Older clients post the serial as sn_no
        if hasattr(data, 'get') and 'serial' not in data and 'sn_no' in data:
            data = data.dict() if hasattr(data, 'dict') else dict(data)
            data['serial'] = data['sn_no']
        return super().to_internal_value(data)


class DeviceUpdateSerializer(serializers.Serializer):
    """Input for a status update with optional identity edits"""

    status = serializers.CharField(max_length=255, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    serial = serializers.CharField(max_length=100, required=False, allow_blank=True)
    imei_1 = serializers.CharField(max_length=32, required=False, allow_blank=True)
    imei_2 = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def field_edits(self):
        return {
            name: self.validated_data[name]
            for name in ('serial', 'imei_1', 'imei_2')
            if name in self.validated_data
        }


class RowOutcomeSerializer(serializers.Serializer):
    row = serializers.IntegerField()
    sn = serializers.CharField(source='serial', allow_blank=True)
    status = serializers.CharField()
    reason = serializers.CharField()


class ImportReportSerializer(serializers.Serializer):
    """Serializer for bulk import results"""

    added = serializers.IntegerField()
    skipped = serializers.IntegerField()
    failed = serializers.IntegerField()
    logs = RowOutcomeSerializer(many=True)
    warnings = serializers.ListField(child=serializers.CharField())
