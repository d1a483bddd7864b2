"""
Stock — Serializers

@file stock/serializers.py
"""

from rest_framework import serializers

from .models import StockMovement


class StockMovementReadSerializer(serializers.ModelSerializer):
    producto = serializers.UUIDField(source='product_id', read_only=True)
    codprod = serializers.CharField(source='product.code', read_only=True)
    movimiento = serializers.CharField(source='kind', read_only=True)
    cantidad = serializers.IntegerField(source='signed_quantity', read_only=True)
    fecha = serializers.DateTimeField(source='occurred_at', read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            'id', 'producto', 'codprod', 'movimiento', 'cantidad', 'quantity',
            'reference_type', 'reference_id', 'reference_number',
            'fecha', 'recorded_by', 'created_at',
        ]
        read_only_fields = fields
