from django.contrib import admin
from django.utils.html import format_html
from django.http import HttpResponse

from .models import AuditEntry, Device
from .queries import ExportRow
from .tabular import CSV, export_filename, write_export

# ============================================
# CUSTOM ACTIONS
# ============================================

def export_to_csv(modeladmin, request, queryset):
    """Export selected devices in the same layout as the API export"""
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{export_filename(CSV)}"'
    rows = [
        ExportRow(
            serial=device.serial,
            imei_1=device.imei_1,
            imei_2=device.imei_2,
            status=device.current_status,
            created_at=device.created_at,
        )
        for device in queryset.order_by('-created_at', '-id')
    ]
    return write_export(rows, response)
export_to_csv.short_description = "Export to CSV"


# ============================================
# INLINE ADMINS
# ============================================

class AuditEntryInline(admin.TabularInline):
    model = AuditEntry
    extra = 0
    can_delete = False
    readonly_fields = ['timestamp', 'status', 'note', 'serial_snapshot']
    fields = ['timestamp', 'status', 'note', 'serial_snapshot']
    ordering = ['-timestamp', '-id']

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


# ============================================
# DEVICE ADMIN
# ============================================

@admin.register(Device)
class DeviceAdmin(admin.ModelAdmin):
    list_display = [
        'serial',
        'model_tag_badge',
        'imei_1',
        'imei_2',
        'current_status',
        'history_count',
        'created_at',
    ]
    list_filter = ['model_tag', 'current_status']
    search_fields = ['serial', 'imei_1', 'imei_2', 'current_status']
    readonly_fields = ['serial', 'imei_1', 'imei_2', 'current_status', 'model_tag', 'created_at', 'updated_at']
    fieldsets = (
        ('Identity', {'fields': ('serial', 'imei_1', 'imei_2', 'model_tag')}),
        ('State', {'fields': ('current_status',)}),
        ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )
    inlines = [AuditEntryInline]
    actions = [export_to_csv]

    def has_add_permission(self, request):
        # Registration goes through the API so the seed audit entry is written
        return False

    def model_tag_badge(self, obj):
        if not obj.model_tag:
            return '-'
        colors = {'V6': '#007bff', 'FAP': '#e67e22'}
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            colors.get(obj.model_tag, '#6c757d'),
            obj.get_model_tag_display()
        )
    model_tag_badge.short_description = 'Model'

    def history_count(self, obj):
        return obj.audit_entries.count()
    history_count.short_description = 'History'


# ============================================
# AUDIT ENTRY ADMIN
# ============================================

@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    list_display = ['serial_snapshot', 'status', 'note', 'timestamp']
    list_filter = ['status']
    search_fields = ['serial_snapshot', 'status', 'note']
    date_hierarchy = 'timestamp'
    readonly_fields = ['device', 'serial_snapshot', 'status', 'note', 'timestamp']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
