"""
Core — Model Tests

Tests for AuditLog, AuditService, the quantity rule and the response
envelope.

@file core/tests/test_models.py
"""

import json
from decimal import Decimal

import pytest
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from core.exceptions import (
    BusinessRuleViolation,
    InsufficientStockError,
    SequenceConflictError,
    standard_exception_handler,
)
from core.identity import RequesterIdentity
from core.models import AuditLog
from core.renderers import StandardJSONRenderer
from core.services import AuditService
from core.validators import QUANTITY_MESSAGE, validate_quantity
from orders.models import Order
from tests.factories import AuditLogFactory, OrderFactory, OrderItemFactory, UserFactory


@pytest.mark.django_db
class TestAuditLog:
    def test_create_audit_log(self):
        user = UserFactory()
        log = AuditService.log(
            identity=RequesterIdentity(user_id=user.pk, ip_address='10.0.0.7', user_agent='pytest'),
            action=AuditLog.ActionChoices.CREATE,
            model_name='Document',
            object_id='0001NR00000001',
            new_values={'key': 'value'},
        )
        assert log.pk is not None
        assert log.action == 'CREATE'
        assert log.actor == user
        assert log.ip_address == '10.0.0.7'
        assert str(log) == f'CREATE Document:0001NR00000001 by {user.pk}'

    def test_factory(self):
        log = AuditLogFactory()
        assert log.pk is not None

    def test_snapshot_is_json_safe(self):
        item = OrderItemFactory(amount=Decimal('12.50'))
        order_snapshot = AuditService.snapshot(item.order, fields=['number', 'client', 'order_date'])
        assert order_snapshot['client'] == str(item.order.client_id)
        assert isinstance(order_snapshot['order_date'], str)
        item_snapshot = AuditService.snapshot(item, fields=['amount'])
        assert item_snapshot == {'amount': '12.50'}
        json.dumps(order_snapshot)

    def test_deactivate_mixin(self):
        item = OrderItemFactory()
        user = UserFactory()
        item.order.deactivate(user_id=user.pk)
        item.order.refresh_from_db()
        assert item.order.is_active is False
        assert item.order.deactivated_by == user
        assert item.order.deactivated_at is not None

    def test_active_queryset(self):
        kept = OrderFactory()
        dropped = OrderFactory()
        dropped.deactivate()
        assert list(Order.objects.active()) == [kept]
        assert list(Order.objects.inactive()) == [dropped]


class TestValidateQuantity:
    @pytest.mark.parametrize('value, expected', [(3, 3), (-2, -2), (4.0, 4), ('7', 7), (' -5 ', -5)])
    def test_accepts_non_zero_integers(self, value, expected):
        assert validate_quantity(value) == expected

    @pytest.mark.parametrize('value', [0, '0', -1.5, 1.5, '1.5', 'abc', '', None, True, [], {}])
    def test_rejects_everything_else(self, value):
        with pytest.raises(BusinessRuleViolation) as exc:
            validate_quantity(value)
        assert str(exc.value.detail) == QUANTITY_MESSAGE


class TestExceptionHandler:
    def test_domain_error_envelope_with_extra(self):
        exc = InsufficientStockError(extra={'productos': [{'codprod': 'x'}]})
        response = standard_exception_handler(exc, {})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {
            'ok': False,
            'err': {
                'message': 'Stock insuficiente para algunos productos',
                'code': 'INSUFFICIENT_STOCK',
                'productos': [{'codprod': 'x'}],
            },
        }

    def test_conflict_is_409(self):
        response = standard_exception_handler(SequenceConflictError('ocupado'), {})
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['err'] == {'message': 'ocupado', 'code': 'SEQUENCE_CONFLICT'}

    def test_serializer_errors_flattened(self):
        exc = ValidationError({'tipo': ['Este campo es obligatorio.']})
        response = standard_exception_handler(exc, {})
        err = response.data['err']
        assert err['code'] == 'VALIDATION_ERROR'
        assert err['message'] == 'Este campo es obligatorio.'
        assert err['errors'] == {'tipo': ['Este campo es obligatorio.']}

    def test_not_found(self):
        response = standard_exception_handler(NotFound(), {})
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['ok'] is False

    def test_unhandled_is_500(self):
        response = standard_exception_handler(RuntimeError('boom'), {})
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['err']['code'] == 'INTERNAL_ERROR'


class TestRenderer:
    def _render(self, data, status_code=200):
        response = Response(data, status=status_code)
        return json.loads(StandardJSONRenderer().render(data, renderer_context={'response': response}))

    def test_wraps_plain_payload(self):
        assert self._render([1, 2]) == {'ok': True, 'data': [1, 2]}

    def test_keeps_payload_with_ok(self):
        assert self._render({'ok': True, 'documento': {}}) == {'ok': True, 'documento': {}}

    def test_paginated_payload(self):
        rendered = self._render({'count': 1, 'next': None, 'previous': None, 'results': [{'id': 1}]})
        assert rendered == {
            'ok': True,
            'data': [{'id': 1}],
            'meta': {'cantidad': 1, 'next': None, 'previous': None},
        }

    def test_errors_untouched(self):
        body = {'ok': False, 'err': {'message': 'x', 'code': 'X'}}
        assert self._render(body, status_code=400) == body


class TestChangedKeys:
    def test_lists_only_differing_keys(self):
        old = {'notes': '', 'provider': 'a', 'is_active': True}
        new = {'notes': 'x', 'provider': 'a', 'is_active': False, 'items': []}
        assert AuditService.changed_keys(old, new) == ['is_active', 'items', 'notes']

    def test_handles_missing_snapshots(self):
        assert AuditService.changed_keys(None, {'number': 1}) == ['number']
