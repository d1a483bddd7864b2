"""
Documents — Django Admin Configuration

Documents are read-only here: numbering fields never change and stock is
only moved through the document service.

@file documents/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import Document, DocumentSequence, LineItem, SequenceReservation


class LineItemInline(admin.TabularInline):
    model = LineItem
    extra = 0
    fields = ('position', 'product', 'product_code', 'quantity')
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = (
        'display_number', 'doc_type', 'provider', 'item_date',
        'registered_at', 'active_badge', 'created_by',
    )
    list_filter = ('doc_type', 'is_active', 'prefix', 'registered_at')
    search_fields = ('display_number', 'provider__business_name', 'notes')
    readonly_fields = (
        'id', 'doc_type', 'prefix', 'sequence', 'display_number',
        'provider', 'item_date', 'registered_at', 'adjustment_operation', 'notes',
        'is_active', 'deactivated_at', 'deactivated_by',
        'created_by', 'updated_by', 'created_at', 'updated_at',
    )
    list_select_related = ('provider', 'created_by')
    inlines = [LineItemInline]
    date_hierarchy = 'registered_at'
    ordering = ('-registered_at',)

    fieldsets = (
        (_('Numbering'), {
            'fields': ('id', 'doc_type', 'prefix', 'sequence', 'display_number'),
        }),
        (_('Content'), {
            'fields': ('provider', 'item_date', 'registered_at', 'adjustment_operation', 'notes'),
        }),
        (_('Status'), {
            'fields': ('is_active', 'deactivated_at', 'deactivated_by'),
        }),
        (_('Audit'), {
            'fields': ('created_by', 'updated_by', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(description=_('Active'))
    def active_badge(self, obj):
        color = '#28a745' if obj.is_active else '#6c757d'
        label = _('Active') if obj.is_active else _('Inactive')
        return format_html(
            '<span style="background:{};color:#fff;padding:2px 8px;border-radius:4px;">{}</span>',
            color, label,
        )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(admin.ModelAdmin):
    list_display = ('doc_type', 'prefix', 'last_value', 'updated_at')
    list_filter = ('doc_type',)
    readonly_fields = ('doc_type', 'prefix', 'last_value', 'updated_at')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SequenceReservation)
class SequenceReservationAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'requested_by', 'state', 'expires_at', 'consumed_at', 'released_at')
    list_filter = ('state', 'doc_type')
    search_fields = ('requested_by__email', 'prefix')
    readonly_fields = (
        'doc_type', 'prefix', 'sequence', 'requested_by', 'state',
        'expires_at', 'consumed_at', 'released_at', 'document', 'created_at',
    )
    list_select_related = ('requested_by',)

    def has_add_permission(self, request):
        return False
