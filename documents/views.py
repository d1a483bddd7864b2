"""
Documents — Views

POST creates a document through DocumentService (one atomic unit);
PATCH/PUT touch only non-numbering fields; DELETE deactivates.
GET /documentos/siguiente returns (and for adjustments reserves) the next
number of a bucket.

@file documents/views.py
"""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.identity import RequesterIdentity

from .filters import DocumentFilter
from .models import Document
from .serializers import (
    DocumentCreateSerializer,
    DocumentReadSerializer,
    DocumentUpdateSerializer,
    NextNumberQuerySerializer,
)
from .services import DocumentService


class DocumentViewSet(viewsets.GenericViewSet):
    """
    Inventory documents (R / NR / AJ).

    list:      ?tipo=&proveedor=&activo=  (paginated)
    create:    201 {ok, documento, stock:{updates}}
    update:    200 {ok, documento, stock:{updates}}
    destroy:   200 {ok, documento}  (deactivation)
    siguiente: 200 {ok, nextSequence, numero, prefijo, tipo, reservadoHasta}
    """

    permission_classes = [IsAuthenticated]
    serializer_class = DocumentReadSerializer
    filterset_class = DocumentFilter

    def get_queryset(self):
        return (
            Document.objects
            .select_related('provider')
            .prefetch_related('items__product')
        )

    def list(self, request):
        page = self.paginate_queryset(self.filter_queryset(self.get_queryset()))
        serializer = DocumentReadSerializer(page, many=True, context={'request': request})
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, pk=None):
        document = DocumentService.get_document(pk)
        return Response({'ok': True, 'documento': DocumentReadSerializer(document).data})

    def create(self, request):
        serializer = DocumentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document, updates = DocumentService.create_document(
            identity=RequesterIdentity.from_request(request),
            **serializer.to_service_kwargs(),
        )
        return Response(
            {
                'ok': True,
                'documento': DocumentReadSerializer(document).data,
                'stock': {'updates': updates},
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        serializer = DocumentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document, updates = DocumentService.update_document(
            identity=RequesterIdentity.from_request(request),
            document_id=pk,
            changes=serializer.to_changes(),
        )
        return Response({
            'ok': True,
            'documento': DocumentReadSerializer(document).data,
            'stock': {'updates': updates},
        })

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        document = DocumentService.deactivate_document(
            identity=RequesterIdentity.from_request(request),
            document_id=pk,
        )
        document = DocumentService.get_document(document.pk)
        return Response({'ok': True, 'documento': DocumentReadSerializer(document).data})

    @action(detail=False, methods=['get'], url_path='siguiente')
    def next_number(self, request):
        query = NextNumberQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(DocumentService.next_number(
            identity=RequesterIdentity.from_request(request),
            doc_type=query.validated_data['tipo'],
            prefix=query.validated_data.get('prefijo'),
            reserve=query.validated_data['reservar'],
        ))
