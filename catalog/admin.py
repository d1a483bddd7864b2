"""
Catalog — Django Admin Configuration

@file catalog/admin.py
"""

from django.contrib import admin

from .models import Client, PriceList, Product, Provider, Truck


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ('code', 'business_name', 'phone', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('business_name', 'tax_id')
    ordering = ('business_name',)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('code', 'description', 'kind', 'stock_on_hand', 'is_active')
    list_filter = ('is_active', 'kind')
    search_fields = ('code', 'description')
    readonly_fields = ('stock_on_hand', 'created_at', 'updated_at')
    ordering = ('description',)


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('code', 'business_name', 'phone', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('business_name',)


@admin.register(Truck)
class TruckAdmin(admin.ModelAdmin):
    list_display = ('name', 'plate', 'is_active')
    list_filter = ('is_active',)


@admin.register(PriceList)
class PriceListAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active')
    list_filter = ('is_active',)
