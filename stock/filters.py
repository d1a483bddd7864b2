"""
Stock — Filters

@file stock/filters.py
"""

from django_filters import rest_framework as filters

from .models import StockMovement


class StockMovementFilter(filters.FilterSet):
    producto = filters.UUIDFilter(field_name='product')
    movimiento = filters.ChoiceFilter(field_name='kind', choices=StockMovement.Kind.choices)

    class Meta:
        model = StockMovement
        fields = ['producto', 'movimiento', 'reference_type', 'reference_id', 'recorded_by']
