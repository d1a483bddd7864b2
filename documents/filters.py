"""
Documents — Filters

@file documents/filters.py
"""

from django_filters import rest_framework as filters

from core.exceptions import BusinessRuleViolation

from .models import Document
from .numbering import normalize_type


class DocumentFilter(filters.FilterSet):
    """?tipo=R|NR|AJ (aliases accepted)&proveedor=<uuid>&activo=true|false"""

    tipo = filters.CharFilter(method='filter_tipo')
    proveedor = filters.UUIDFilter(field_name='provider')
    activo = filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Document
        fields = ['tipo', 'proveedor', 'activo']

    def filter_tipo(self, queryset, name, value):
        doc_type = normalize_type(value)
        if doc_type is None:
            raise BusinessRuleViolation('Tipo de documento inválido. Valores permitidos: R, NR, AJ.')
        return queryset.filter(doc_type=doc_type)
