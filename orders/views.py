"""
Orders — Views

Create, read and deactivate sales orders (comandas). Creation runs through
OrderService as one atomic unit.

@file orders/views.py
"""

from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.identity import RequesterIdentity

from .filters import OrderFilter
from .models import Order
from .serializers import OrderCreateSerializer, OrderReadSerializer
from .services import OrderService


class OrderViewSet(viewsets.GenericViewSet):
    """
    create:  201 {ok, comanda}
    retrieve / list: {ok, comanda} / paginated
    destroy: 200 {ok, comanda}  (deactivation, stock is not restored)
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderReadSerializer
    filterset_class = OrderFilter

    def get_queryset(self):
        return Order.objects.select_related('client').prefetch_related('items__product')

    def list(self, request):
        page = self.paginate_queryset(self.filter_queryset(self.get_queryset()))
        return self.get_paginated_response(OrderReadSerializer(page, many=True).data)

    def retrieve(self, request, pk=None):
        order = OrderService.get_order(pk)
        return Response({'ok': True, 'comanda': OrderReadSerializer(order).data})

    def create(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = OrderService.create_order(
            identity=RequesterIdentity.from_request(request),
            **serializer.to_service_kwargs(),
        )
        return Response(
            {'ok': True, 'comanda': OrderReadSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )

    def destroy(self, request, pk=None):
        order = OrderService.deactivate_order(
            identity=RequesterIdentity.from_request(request),
            order_id=pk,
        )
        return Response({'ok': True, 'comanda': OrderReadSerializer(order).data})
