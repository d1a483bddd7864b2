"""
Documents — Serializers

Wire format uses the Spanish field names of the public API. Input
serializers only check shape; business rules live in DocumentService.

@file documents/serializers.py
"""

from rest_framework import serializers

from .models import Document, LineItem

__all__ = [
    'LineItemReadSerializer',
    'DocumentReadSerializer',
    'DocumentCreateSerializer',
    'DocumentUpdateSerializer',
    'NextNumberQuerySerializer',
]

REQUIRED = {'required': 'Este campo es obligatorio.', 'null': 'Este campo es obligatorio.'}


class AdjustmentOperationField(serializers.Field):
    """Operation token ("AJUSTE-", "incremento") or a boolean decrement flag."""

    default_error_messages = {'invalid': 'La operación de ajuste debe ser texto o booleano.'}

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_null', True)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if isinstance(data, bool):
            return data
        if isinstance(data, str):
            return data.strip()
        self.fail('invalid')

    def to_representation(self, value):
        return value


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

class LineItemReadSerializer(serializers.ModelSerializer):
    producto = serializers.UUIDField(source='product_id', read_only=True)
    codprod = serializers.CharField(source='product_code', read_only=True)
    descripcion = serializers.CharField(source='product.description', read_only=True)
    cantidad = serializers.IntegerField(source='quantity', read_only=True)

    class Meta:
        model = LineItem
        fields = ['producto', 'codprod', 'descripcion', 'cantidad']
        read_only_fields = fields


class DocumentReadSerializer(serializers.ModelSerializer):
    tipo = serializers.CharField(source='doc_type', read_only=True)
    tipoDescripcion = serializers.CharField(source='get_doc_type_display', read_only=True)
    prefijo = serializers.CharField(source='prefix', read_only=True)
    secuencia = serializers.IntegerField(source='sequence', read_only=True)
    NrodeDocumento = serializers.CharField(source='display_number', read_only=True)
    proveedor = serializers.UUIDField(source='provider_id', read_only=True)
    proveedorNombre = serializers.CharField(source='provider.business_name', read_only=True)
    fechaRemito = serializers.DateField(source='item_date', read_only=True)
    fechaRegistro = serializers.DateTimeField(source='registered_at', read_only=True)
    usuario = serializers.UUIDField(source='created_by_id', read_only=True)
    ajusteOperacion = serializers.CharField(source='adjustment_operation', read_only=True)
    observaciones = serializers.CharField(source='notes', read_only=True)
    activo = serializers.BooleanField(source='is_active', read_only=True)
    items = LineItemReadSerializer(many=True, read_only=True)

    class Meta:
        model = Document
        fields = [
            'id', 'tipo', 'tipoDescripcion', 'prefijo', 'secuencia', 'NrodeDocumento',
            'proveedor', 'proveedorNombre', 'fechaRemito', 'fechaRegistro',
            'usuario', 'ajusteOperacion', 'observaciones', 'activo', 'items',
        ]
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Write
# ---------------------------------------------------------------------------

class DocumentCreateSerializer(serializers.Serializer):
    tipo = serializers.CharField(error_messages=REQUIRED)
    prefijo = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    proveedor = serializers.CharField(error_messages=REQUIRED)
    fechaRemito = serializers.CharField(error_messages=REQUIRED)
    items = serializers.ListField(
        child=serializers.DictField(),
        allow_empty=True,
        error_messages=REQUIRED,
    )
    ajusteOperacion = AdjustmentOperationField()
    numeroSugerido = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    nroSugerido = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    nroDocumento = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    observaciones = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_service_kwargs(self) -> dict:
        data = self.validated_data
        suggested = data.get('numeroSugerido') or data.get('nroSugerido') or data.get('nroDocumento')
        return {
            'doc_type': data['tipo'],
            'prefix': data.get('prefijo'),
            'provider_id': data['proveedor'],
            'item_date': data['fechaRemito'],
            'items': data['items'],
            'adjustment_operation': data.get('ajusteOperacion'),
            'suggested_number': suggested,
            'notes': data.get('observaciones') or '',
        }


class DocumentUpdateSerializer(serializers.Serializer):
    tipo = serializers.CharField(required=False, allow_blank=True)
    prefijo = serializers.CharField(required=False, allow_blank=True)
    proveedor = serializers.CharField(required=False)
    fechaRemito = serializers.CharField(required=False)
    observaciones = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = serializers.ListField(child=serializers.DictField(), required=False, allow_empty=True)
    ajusteOperacion = AdjustmentOperationField()
    activo = serializers.BooleanField(required=False)

    FIELD_MAP = {
        'tipo': 'doc_type',
        'prefijo': 'prefix',
        'proveedor': 'provider_id',
        'fechaRemito': 'item_date',
        'observaciones': 'notes',
        'items': 'items',
        'ajusteOperacion': 'adjustment_operation',
        'activo': 'is_active',
    }

    def to_changes(self) -> dict:
        return {self.FIELD_MAP[key]: value for key, value in self.validated_data.items()}


class NextNumberQuerySerializer(serializers.Serializer):
    tipo = serializers.CharField(error_messages=REQUIRED)
    prefijo = serializers.CharField(required=False, allow_blank=True)
    reservar = serializers.BooleanField(required=False, default=False)
