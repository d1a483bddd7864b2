"""
Documents — API Integration Tests

@file documents/tests/test_views.py
"""

import uuid

import pytest
from django.urls import reverse
from rest_framework import status

from catalog.models import Product
from documents.models import Document, SequenceReservation
from stock.models import StockMovement
from tests.factories import DocumentFactory, LineItemFactory, ProductFactory, ProviderFactory


pytestmark = pytest.mark.django_db

LIST_URL = 'api-v1:documents:document-list'
DETAIL_URL = 'api-v1:documents:document-detail'
NEXT_URL = 'api-v1:documents:document-next-number'


@pytest.fixture
def provider():
    return ProviderFactory()


@pytest.fixture
def product():
    return ProductFactory(stock_on_hand=2)


def _payload(provider, product, **overrides):
    payload = {
        'tipo': 'NR',
        'prefijo': '0001',
        'proveedor': str(provider.pk),
        'fechaRemito': '2026-03-01',
        'items': [{'producto': str(product.pk), 'codprod': product.code, 'cantidad': 5}],
    }
    payload.update(overrides)
    return payload


class TestDocumentCreate:

    def test_requires_authentication(self, api_client, provider, product):
        response = api_client.post(reverse(LIST_URL), _payload(provider, product), format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert Document.objects.count() == 0

    def test_creates_reception_note(self, authenticated_client, user, provider, product):
        response = authenticated_client.post(reverse(LIST_URL), _payload(provider, product), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body['ok'] is True
        assert body['documento']['NrodeDocumento'] == '0001NR00000001'
        assert body['documento']['usuario'] == str(user.pk)
        assert body['documento']['items'][0]['cantidad'] == 5
        assert body['stock']['updates'] == [{
            'producto': str(product.pk),
            'codprod': product.code,
            'incremento': 5,
            'operacion': 'increment',
            'stkactual': 7,
        }]
        assert Product.objects.get(pk=product.pk).stock_on_hand == 7

    def test_identical_resubmission_is_rejected(self, authenticated_client, provider, product):
        payload = _payload(provider, product, numeroSugerido='0001NR00000001')

        first = authenticated_client.post(reverse(LIST_URL), payload, format='json')
        second = authenticated_client.post(reverse(LIST_URL), payload, format='json')

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_409_CONFLICT
        err = second.json()['err']
        assert err['code'] == 'DUPLICATE_DOCUMENT'
        assert err['message'].startswith('Ya existe un documento activo')
        assert Document.objects.count() == 1
        assert Product.objects.get(pk=product.pk).stock_on_hand == 7

    def test_stale_reception_note_number_returns_next(self, authenticated_client, provider, product):
        authenticated_client.post(reverse(LIST_URL), _payload(provider, product), format='json')
        response = authenticated_client.post(
            reverse(LIST_URL), _payload(provider, product, nroSugerido='0001NR00000009'), format='json',
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        err = response.json()['err']
        assert err['code'] == 'SEQUENCE_CONFLICT'
        assert err['nextSequence'] == 2
        assert err['numero'] == '0001NR00000002'

    @pytest.mark.parametrize('quantity', [0, -1.5, 'abc', 10**19, -2_147_483_648])
    def test_invalid_quantity_is_400(self, authenticated_client, provider, product, quantity):
        payload = _payload(provider, product, tipo='AJ')
        payload['items'][0]['cantidad'] = quantity
        response = authenticated_client.post(reverse(LIST_URL), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err'] == {
            'message': 'La cantidad debe ser un entero distinto de cero',
            'code': 'VALIDATION_ERROR',
        }
        assert Product.objects.get(pk=product.pk).stock_on_hand == 2

    def test_missing_required_field_is_400(self, authenticated_client, provider, product):
        payload = _payload(provider, product)
        del payload['fechaRemito']
        response = authenticated_client.post(reverse(LIST_URL), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err']['code'] == 'VALIDATION_ERROR'

    def test_unknown_provider_is_400(self, authenticated_client, product):
        payload = _payload(ProviderFactory(), product, proveedor=str(uuid.uuid4()))
        response = authenticated_client.post(reverse(LIST_URL), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err']['code'] == 'REFERENCE_NOT_FOUND'

    def test_adjustment_with_negative_line(self, authenticated_client, provider, product):
        payload = _payload(provider, product, tipo='AJ')
        payload['items'][0]['cantidad'] = -2
        response = authenticated_client.post(reverse(LIST_URL), payload, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()['stock']['updates'][0]['decremento'] == 2
        assert Product.objects.get(pk=product.pk).stock_on_hand == 0
        assert StockMovement.objects.get().kind == StockMovement.Kind.ADJUST_OUT

    @pytest.mark.parametrize('flag, expected_stock', [(True, 0), (False, 4)])
    def test_adjustment_operation_accepts_boolean(self, authenticated_client, provider, product, flag, expected_stock):
        payload = _payload(provider, product, tipo='AJ', ajusteOperacion=flag)
        payload['items'][0]['cantidad'] = 2
        response = authenticated_client.post(reverse(LIST_URL), payload, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        assert Product.objects.get(pk=product.pk).stock_on_hand == expected_stock

    def test_adjustment_operation_rejects_other_json_types(self, authenticated_client, provider, product):
        payload = _payload(provider, product, tipo='AJ', ajusteOperacion=[1])
        response = authenticated_client.post(reverse(LIST_URL), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err']['code'] == 'VALIDATION_ERROR'


class TestDocumentRead:

    def test_list_is_paginated_and_filtered(self, authenticated_client):
        DocumentFactory(doc_type='NR')
        DocumentFactory(doc_type='AJ')
        response = authenticated_client.get(reverse(LIST_URL), {'tipo': 'AJ'})
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['ok'] is True
        assert body['meta']['cantidad'] == 1
        assert body['data'][0]['tipo'] == 'AJ'

    def test_list_rejects_unknown_type(self, authenticated_client):
        response = authenticated_client.get(reverse(LIST_URL), {'tipo': 'X'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err']['code'] == 'VALIDATION_ERROR'

    def test_list_type_filter_accepts_alias(self, authenticated_client):
        DocumentFactory(doc_type='NR')
        DocumentFactory(doc_type='R')
        response = authenticated_client.get(reverse(LIST_URL), {'tipo': 'Nota de recepción'})
        body = response.json()
        assert body['meta']['cantidad'] == 1
        assert body['data'][0]['tipo'] == 'NR'

    def test_list_filters_by_provider_and_active_flag(self, authenticated_client):
        kept = DocumentFactory()
        dropped = DocumentFactory(provider=kept.provider)
        dropped.deactivate()
        DocumentFactory()
        response = authenticated_client.get(
            reverse(LIST_URL), {'proveedor': str(kept.provider_id), 'activo': 'false'},
        )
        body = response.json()
        assert body['meta']['cantidad'] == 1
        assert body['data'][0]['id'] == str(dropped.pk)

    def test_list_rejects_malformed_provider(self, authenticated_client):
        response = authenticated_client.get(reverse(LIST_URL), {'proveedor': 'abc'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err']['code'] == 'VALIDATION_ERROR'

    def test_retrieve_includes_items(self, authenticated_client):
        line = LineItemFactory(quantity=3)
        response = authenticated_client.get(reverse(DETAIL_URL, args=[line.document.pk]))
        assert response.status_code == status.HTTP_200_OK
        documento = response.json()['documento']
        assert documento['items'] == [{
            'producto': str(line.product.pk),
            'codprod': line.product.code,
            'descripcion': line.product.description,
            'cantidad': 3,
        }]

    def test_retrieve_unknown_is_404(self, authenticated_client):
        response = authenticated_client.get(reverse(DETAIL_URL, args=[uuid.uuid4()]))
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()['err']['message'] == 'Documento no encontrado.'


class TestDocumentWrite:

    def test_patch_notes(self, authenticated_client, provider, product):
        created = authenticated_client.post(reverse(LIST_URL), _payload(provider, product), format='json')
        document_id = created.json()['documento']['id']
        response = authenticated_client.patch(
            reverse(DETAIL_URL, args=[document_id]), {'observaciones': 'faltó una caja'}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['documento']['observaciones'] == 'faltó una caja'
        assert response.json()['stock']['updates'] == []

    def test_patch_type_is_rejected(self, authenticated_client, provider, product):
        created = authenticated_client.post(reverse(LIST_URL), _payload(provider, product), format='json')
        document_id = created.json()['documento']['id']
        response = authenticated_client.patch(
            reverse(DETAIL_URL, args=[document_id]), {'tipo': 'AJ'}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Document.objects.get(pk=document_id).doc_type == 'NR'

    def test_delete_deactivates_without_touching_stock(self, authenticated_client, provider, product):
        created = authenticated_client.post(reverse(LIST_URL), _payload(provider, product), format='json')
        document_id = created.json()['documento']['id']
        response = authenticated_client.delete(reverse(DETAIL_URL, args=[document_id]))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['documento']['activo'] is False
        assert Document.objects.filter(pk=document_id).exists()
        assert Product.objects.get(pk=product.pk).stock_on_hand == 7


class TestNextNumber:

    def test_reception_note_peek(self, authenticated_client):
        DocumentFactory(doc_type='NR', prefix='0001', sequence=3)
        response = authenticated_client.get(reverse(NEXT_URL), {'tipo': 'NR', 'prefijo': '1'})
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['nextSequence'] == 4
        assert body['numero'] == '0001NR00000004'
        assert body['reservadoHasta'] is None
        assert not SequenceReservation.objects.exists()

    def test_adjustment_reserves_for_requester(self, authenticated_client, user):
        response = authenticated_client.get(reverse(NEXT_URL), {'tipo': 'AJ'})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['reservadoHasta'] is not None
        reservation = SequenceReservation.objects.get()
        assert reservation.requested_by_id == user.pk
        assert reservation.sequence == response.json()['nextSequence']

    def test_type_is_required(self, authenticated_client):
        response = authenticated_client.get(reverse(NEXT_URL))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
