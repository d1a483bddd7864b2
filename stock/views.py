"""
Stock — Views

Read-only access to the stock ledger plus a live-versus-ledger balance
check per product.

@file stock/views.py
"""

from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from catalog.services import CatalogService
from core.exceptions import BusinessRuleViolation

from .filters import StockMovementFilter
from .models import StockMovement
from .serializers import StockMovementReadSerializer
from .services import StockService


class StockMovementViewSet(mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           viewsets.GenericViewSet):
    """List/retrieve stock movements. Filters: ?producto=<uuid>&movimiento=<kind>."""

    permission_classes = [IsAuthenticated]
    serializer_class = StockMovementReadSerializer
    filterset_class = StockMovementFilter

    def get_queryset(self):
        return StockMovement.objects.select_related('product')

    @action(detail=False, methods=['get'], url_path='saldo')
    def balance(self, request):
        product_id = request.query_params.get('producto')
        if not product_id or not CatalogService.is_valid_id(product_id):
            raise BusinessRuleViolation('Debe indicar un producto válido.')
        return Response({'ok': True, **StockService.balance_report(product_id)})
