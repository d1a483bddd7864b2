"""
Orders — API Integration Tests

@file orders/tests/test_views.py
"""

import uuid

import pytest
from django.urls import reverse
from rest_framework import status

from catalog.models import Product
from orders.models import Order
from tests.factories import ClientFactory, OrderItemFactory, PriceListFactory, ProductFactory


pytestmark = pytest.mark.django_db

LIST_URL = 'api-v1:orders:order-list'
DETAIL_URL = 'api-v1:orders:order-detail'


def _payload(client_record, *lines):
    return {
        'codcli': str(client_record.pk),
        'items': [
            {'codprod': str(product.pk), 'lista': str(price_list.pk), 'cantidad': quantity, 'monto': '250.00'}
            for product, price_list, quantity in lines
        ],
    }


class TestOrderCreate:

    def test_requires_authentication(self, api_client):
        response = api_client.post(reverse(LIST_URL), {}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_creates_order(self, authenticated_client, user):
        product = ProductFactory(stock_on_hand=3)
        price_list = PriceListFactory()
        response = authenticated_client.post(
            reverse(LIST_URL), _payload(ClientFactory(), (product, price_list, 2)), format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        comanda = response.json()['comanda']
        assert comanda['nrodecomanda'] == 1
        assert comanda['usuario'] == str(user.pk)
        assert comanda['items'][0]['cantidad'] == 2
        assert comanda['items'][0]['monto'] == 250.0
        assert Product.objects.get(pk=product.pk).stock_on_hand == 1

    def test_insufficient_stock_is_400_with_products(self, authenticated_client):
        short = ProductFactory(stock_on_hand=1)
        price_list = PriceListFactory()
        response = authenticated_client.post(
            reverse(LIST_URL), _payload(ClientFactory(), (short, price_list, 4)), format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        err = response.json()['err']
        assert err['code'] == 'INSUFFICIENT_STOCK'
        assert err['message'] == 'Stock insuficiente para algunos productos'
        assert err['productos'] == [{
            'codprod': str(short.pk),
            'descripcion': short.description,
            'stkactual': 1,
            'solicitado': 4,
        }]
        assert Order.objects.count() == 0

    def test_missing_client_is_400(self, authenticated_client):
        response = authenticated_client.post(reverse(LIST_URL), {'items': []}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err']['message'] == 'El cliente es obligatorio.'

    def test_empty_items_is_400(self, authenticated_client):
        response = authenticated_client.post(
            reverse(LIST_URL), {'codcli': str(ClientFactory().pk), 'items': []}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['err']['message'] == 'La comanda debe incluir al menos un ítem'


class TestOrderReadAndDeactivate:

    def test_list(self, authenticated_client):
        OrderItemFactory()
        response = authenticated_client.get(reverse(LIST_URL))
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['meta']['cantidad'] == 1
        assert len(body['data'][0]['items']) == 1

    def test_list_filtered_by_client(self, authenticated_client):
        wanted = OrderItemFactory().order
        OrderItemFactory()
        response = authenticated_client.get(reverse(LIST_URL), {'client': str(wanted.client_id)})
        body = response.json()
        assert body['meta']['cantidad'] == 1
        assert body['data'][0]['codcli'] == str(wanted.client_id)

    def test_list_filtered_by_active_flag(self, authenticated_client):
        OrderItemFactory()
        dropped = OrderItemFactory().order
        dropped.deactivate()
        response = authenticated_client.get(reverse(LIST_URL), {'activo': 'false'})
        body = response.json()
        assert body['meta']['cantidad'] == 1
        assert body['data'][0]['nrodecomanda'] == dropped.number

    def test_retrieve(self, authenticated_client):
        item = OrderItemFactory()
        response = authenticated_client.get(reverse(DETAIL_URL, args=[item.order.pk]))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['comanda']['nrodecomanda'] == item.order.number

    def test_retrieve_unknown_is_404(self, authenticated_client):
        response = authenticated_client.get(reverse(DETAIL_URL, args=[uuid.uuid4()]))
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()['err']['message'] == 'Comanda no encontrada'

    def test_delete_deactivates(self, authenticated_client):
        item = OrderItemFactory()
        response = authenticated_client.delete(reverse(DETAIL_URL, args=[item.order.pk]))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['comanda']['activo'] is False
        assert Order.objects.get(pk=item.order.pk).is_active is False

    def test_delete_unknown_is_404(self, authenticated_client):
        response = authenticated_client.delete(reverse(DETAIL_URL, args=[uuid.uuid4()]))
        assert response.status_code == status.HTTP_404_NOT_FOUND
