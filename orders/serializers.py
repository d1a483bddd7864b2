"""
Orders — Serializers

@file orders/serializers.py
"""

from rest_framework import serializers

from .models import Order, OrderItem

__all__ = [
    'OrderItemReadSerializer',
    'OrderReadSerializer',
    'OrderCreateSerializer',
]


class OrderItemReadSerializer(serializers.ModelSerializer):
    lista = serializers.UUIDField(source='price_list_id', read_only=True)
    codprod = serializers.UUIDField(source='product_id', read_only=True)
    descripcion = serializers.CharField(source='product.description', read_only=True)
    cantidad = serializers.IntegerField(source='quantity', read_only=True)
    monto = serializers.DecimalField(source='amount', max_digits=14, decimal_places=2, read_only=True)
    cantidadentregada = serializers.IntegerField(source='delivered_quantity', read_only=True)
    entregado = serializers.BooleanField(source='delivered', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'lista', 'codprod', 'descripcion', 'cantidad', 'monto',
            'cantidadentregada', 'entregado',
        ]
        read_only_fields = fields


class OrderReadSerializer(serializers.ModelSerializer):
    nrodecomanda = serializers.IntegerField(source='number', read_only=True)
    codcli = serializers.UUIDField(source='client_id', read_only=True)
    cliente = serializers.CharField(source='client.business_name', read_only=True)
    fecha = serializers.DateTimeField(source='order_date', read_only=True)
    camion = serializers.UUIDField(source='delivery_truck_id', read_only=True)
    camionero = serializers.UUIDField(source='driver_id', read_only=True)
    fechadeentrega = serializers.DateTimeField(source='delivery_date', read_only=True)
    usuario = serializers.UUIDField(source='created_by_id', read_only=True)
    activo = serializers.BooleanField(source='is_active', read_only=True)
    items = OrderItemReadSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'nrodecomanda', 'codcli', 'cliente', 'fecha',
            'camion', 'camionero', 'fechadeentrega', 'usuario', 'activo', 'items',
        ]
        read_only_fields = fields


class OrderCreateSerializer(serializers.Serializer):
    codcli = serializers.CharField(
        error_messages={'required': 'El cliente es obligatorio.', 'null': 'El cliente es obligatorio.'},
    )
    fecha = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    camion = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    camionero = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    fechadeentrega = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = serializers.ListField(
        child=serializers.DictField(),
        allow_empty=True,
        error_messages={'required': 'La comanda debe incluir al menos un ítem'},
    )

    def to_service_kwargs(self) -> dict:
        data = self.validated_data
        return {
            'client_id': data['codcli'],
            'items': data['items'],
            'order_date': data.get('fecha'),
            'delivery_truck_id': data.get('camion') or None,
            'driver_id': data.get('camionero') or None,
            'delivery_date': data.get('fechadeentrega'),
        }
