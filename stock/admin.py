"""
Stock — Django Admin Configuration

Read-only list of StockMovement. No edit, no delete (insert-only).

@file stock/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        'occurred_at', 'product', 'kind', 'quantity',
        'reference_type', 'reference_number', 'recorded_by',
    )
    list_filter = ('kind', 'reference_type', 'occurred_at')
    search_fields = ('product__code', 'product__description', 'reference_number')
    readonly_fields = (
        'id', 'product', 'kind', 'quantity',
        'reference_type', 'reference_id', 'reference_number',
        'occurred_at', 'recorded_by', 'created_at',
    )
    list_select_related = ('product', 'recorded_by')
    show_full_result_count = False
    list_per_page = 50
    date_hierarchy = 'occurred_at'
    ordering = ('-occurred_at',)

    fieldsets = (
        (_('Movement'), {
            'fields': ('id', 'product', 'kind', 'quantity', 'occurred_at'),
        }),
        (_('Reference'), {
            'fields': ('reference_type', 'reference_id', 'reference_number'),
        }),
        (_('Audit'), {
            'fields': ('recorded_by', 'created_at'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False  # INSERT ONLY

    def has_delete_permission(self, request, obj=None):
        return False  # INSERT ONLY
