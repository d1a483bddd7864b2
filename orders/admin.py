"""
Orders — Django Admin Configuration

@file orders/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Order, OrderCounter, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ('position', 'price_list', 'product', 'quantity', 'amount', 'delivered_quantity', 'delivered')
    readonly_fields = ('position', 'price_list', 'product', 'quantity', 'amount')
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('number', 'client', 'order_date', 'delivery_truck', 'is_active', 'created_by')
    list_filter = ('is_active', 'order_date', 'delivery_truck')
    search_fields = ('number', 'client__business_name')
    readonly_fields = (
        'id', 'number', 'client', 'order_date',
        'is_active', 'deactivated_at', 'deactivated_by',
        'created_by', 'updated_by', 'created_at', 'updated_at',
    )
    list_select_related = ('client', 'delivery_truck', 'created_by')
    inlines = [OrderItemInline]
    date_hierarchy = 'order_date'
    ordering = ('-number',)

    fieldsets = (
        (_('Order'), {
            'fields': ('id', 'number', 'client', 'order_date'),
        }),
        (_('Delivery'), {
            'fields': ('delivery_truck', 'driver', 'delivery_date'),
        }),
        (_('Status'), {
            'fields': ('is_active', 'deactivated_at', 'deactivated_by'),
        }),
        (_('Audit'), {
            'fields': ('created_by', 'updated_by', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(OrderCounter)
class OrderCounterAdmin(admin.ModelAdmin):
    list_display = ('key', 'last_number', 'updated_at')
    readonly_fields = ('key', 'last_number', 'updated_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
