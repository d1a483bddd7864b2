"""
Orders — Filters

@file orders/filters.py
"""

from django_filters import rest_framework as filters

from .models import Order


class OrderFilter(filters.FilterSet):
    activo = filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Order
        fields = ['client', 'delivery_truck', 'driver', 'activo']
