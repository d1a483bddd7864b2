"""
Core — Django Admin Configuration

Read-only admin for AuditLog.

@file core/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from core.models import AuditLog
from core.services import AuditService

ACTION_COLORS = {
    'CREATE': '#16a34a',
    'UPDATE': '#2563eb',
    'DEACTIVATE': '#dc2626',
}


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Who created, edited or deactivated which document or order."""

    list_display = ('timestamp', 'action_badge', 'model_name', 'object_id', 'actor', 'changes', 'ip_address')
    list_filter = ('action', 'model_name')
    search_fields = ('object_id', 'actor__email')
    readonly_fields = [field.name for field in AuditLog._meta.fields]
    date_hierarchy = 'timestamp'
    list_select_related = ('actor',)
    ordering = ('-timestamp',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Action'))
    def action_badge(self, obj):
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; border-radius:4px;">{}</span>',
            ACTION_COLORS.get(obj.action, '#6b7280'), obj.get_action_display(),
        )

    @admin.display(description=_('Changed fields'))
    def changes(self, obj):
        if obj.action == AuditLog.ActionChoices.CREATE:
            return '-'
        return ', '.join(AuditService.changed_keys(obj.old_values, obj.new_values)) or '-'
