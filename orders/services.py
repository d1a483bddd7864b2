"""
Orders — Service Layer

OrderService.create_order: stock pre-check, then one atomic unit that
increments the singleton counter, persists the order, decrements stock per
product with a guarded update and appends the sale movements. Stock is
re-validated by the guarded decrement inside the unit, so an order that
lost a race against another order is rolled back whole.

@file orders/services.py
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal, InvalidOperation

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F, Max
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from catalog.services import CatalogService
from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DEACTIVATE
from core.exceptions import (
    BusinessRuleViolation,
    InsufficientStockError,
    ReferenceNotFoundError,
    ResourceNotFoundError,
)
from core.identity import RequesterIdentity
from core.services import AuditService
from core.validators import validate_quantity
from stock.models import StockMovement
from stock.services import StockService

from .models import Order, OrderCounter, OrderItem

logger = logging.getLogger('distribuidora')

ORDER_AUDIT_FIELDS = [
    'number', 'client', 'delivery_truck', 'driver', 'order_date', 'delivery_date', 'is_active',
]


@dataclass(frozen=True)
class OrderLine:
    price_list_id: str
    product_id: str
    quantity: int
    amount: Decimal


def _parse_moment(value, label: str) -> datetime | None:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        raw = str(value).strip()
        try:
            moment = parse_datetime(raw)
            if moment is None:
                day = parse_date(raw)
                moment = datetime.combine(day, time.min) if day else None
        except ValueError:
            moment = None
        if moment is None:
            raise BusinessRuleViolation(f'La {label} es inválida.')
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment


def _parse_lines(raw_items) -> list[OrderLine]:
    if not isinstance(raw_items, (list, tuple)) or not raw_items:
        raise BusinessRuleViolation('La comanda debe incluir al menos un ítem')

    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise BusinessRuleViolation('Ítem de comanda inválido.')
        product_id = raw.get('codprod')
        if not product_id or not CatalogService.is_valid_id(product_id):
            raise BusinessRuleViolation('Cada ítem debe indicar un producto válido.')
        price_list_id = raw.get('lista')
        if not price_list_id or not CatalogService.is_valid_id(price_list_id):
            raise BusinessRuleViolation('Cada ítem debe indicar una lista de precios válida.')
        quantity = validate_quantity(raw.get('cantidad'))
        if quantity < 0:
            raise BusinessRuleViolation('La cantidad de una comanda debe ser positiva.')
        try:
            amount = Decimal(str(raw.get('monto')))
        except (InvalidOperation, ValueError):
            raise BusinessRuleViolation('El monto del ítem es inválido.')
        if not amount.is_finite():
            raise BusinessRuleViolation('El monto del ítem es inválido.')
        lines.append(OrderLine(
            price_list_id=CatalogService.canonical_id(price_list_id),
            product_id=CatalogService.canonical_id(product_id),
            quantity=quantity,
            amount=amount,
        ))
    return lines


def _requested_per_product(lines: list[OrderLine]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


class OrderService:
    """Coordinator for sales orders. The only code path that touches OrderCounter."""

    @staticmethod
    def get_order(order_id) -> Order:
        if not CatalogService.is_valid_id(order_id):
            raise ResourceNotFoundError('Comanda no encontrada')
        try:
            return (
                Order.objects
                .select_related('client', 'delivery_truck')
                .prefetch_related('items__product')
                .get(pk=order_id)
            )
        except Order.DoesNotExist:
            raise ResourceNotFoundError('Comanda no encontrada')

    @staticmethod
    def shortfalls(totals: dict[str, int]) -> list[dict]:
        """Every product whose stock on hand cannot cover the requested total."""
        products = CatalogService.get_products(list(totals))
        missing = []
        for product_id, requested in totals.items():
            product = products.get(product_id)
            available = product.stock_on_hand if product else 0
            if product is None or available < requested:
                missing.append({
                    'codprod': product_id,
                    'descripcion': product.description if product else 'Producto no encontrado',
                    'stkactual': available,
                    'solicitado': requested,
                })
        return missing

    @staticmethod
    def _next_number() -> int:
        """Locked increment-and-fetch on the singleton counter."""
        OrderCounter.objects.get_or_create(
            key=OrderCounter.SINGLETON_KEY,
            defaults={'last_number': Order.objects.aggregate(top=Max('number'))['top'] or 0},
        )
        OrderCounter.objects.filter(key=OrderCounter.SINGLETON_KEY).update(
            last_number=F('last_number') + 1,
        )
        return (
            OrderCounter.objects
            .select_for_update()
            .values_list('last_number', flat=True)
            .get(key=OrderCounter.SINGLETON_KEY)
        )

    @staticmethod
    @transaction.atomic
    def create_order(
        *,
        identity: RequesterIdentity,
        client_id=None,
        items=None,
        order_date=None,
        delivery_truck_id=None,
        driver_id=None,
        delivery_date=None,
    ) -> Order:
        """
        Create an order and decrement stock for every product in it.
        Any shortfall rejects the whole order; nothing is written.
        """
        lines = _parse_lines(items)

        if not client_id:
            raise BusinessRuleViolation('El cliente es obligatorio.')
        if not CatalogService.is_valid_id(client_id) or not CatalogService.client_exists(client_id):
            raise ReferenceNotFoundError('El cliente indicado no existe.')
        if delivery_truck_id and (
            not CatalogService.is_valid_id(delivery_truck_id)
            or not CatalogService.truck_exists(delivery_truck_id)
        ):
            raise ReferenceNotFoundError('El camión indicado no existe.')
        if driver_id and (
            not CatalogService.is_valid_id(driver_id)
            or not get_user_model().objects.active().filter(pk=driver_id).exists()
        ):
            raise ReferenceNotFoundError('El camionero indicado no existe.')
        if not CatalogService.price_lists_exist({line.price_list_id for line in lines}):
            raise ReferenceNotFoundError('Alguna de las listas de precios indicadas no existe.')
        order_date = _parse_moment(order_date, 'fecha de la comanda') or timezone.now()
        delivery_date = _parse_moment(delivery_date, 'fecha de entrega')

        totals = _requested_per_product(lines)
        missing = OrderService.shortfalls(totals)
        if missing:
            logger.warning('Order rejected, insufficient stock for %s product(s)', len(missing))
            raise InsufficientStockError(extra={'productos': missing})

        number = OrderService._next_number()
        order = Order.objects.create(
            number=number,
            client_id=client_id,
            delivery_truck_id=delivery_truck_id or None,
            driver_id=driver_id or None,
            order_date=order_date,
            delivery_date=delivery_date,
            created_by_id=identity.user_id,
            updated_by_id=identity.user_id,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                position=position,
                price_list_id=line.price_list_id,
                product_id=line.product_id,
                quantity=line.quantity,
                amount=line.amount,
            )
            for position, line in enumerate(lines)
        ])

        raced = []
        for product_id, requested in totals.items():
            if StockService.decrement_if_available(product_id, requested) is None:
                raced.append(product_id)
        if raced:
            missing = OrderService.shortfalls({pid: totals[pid] for pid in raced})
            logger.warning('Order %s rolled back, stock consumed concurrently', number)
            raise InsufficientStockError(extra={'productos': missing})

        for product_id, requested in totals.items():
            StockService.record_movement(
                product_id=product_id,
                kind=StockMovement.Kind.SALE,
                quantity=requested,
                reference_type=StockMovement.ReferenceType.ORDER,
                reference_id=order.pk,
                reference_number=str(number),
                occurred_at=order_date,
                recorded_by_id=identity.user_id,
            )

        AuditService.log(
            identity=identity,
            action=AUDIT_ACTION_CREATE,
            model_name='Order',
            object_id=str(order.pk),
            new_values={
                **AuditService.snapshot(order, fields=ORDER_AUDIT_FIELDS),
                'items': [{'codprod': pid, 'cantidad': qty} for pid, qty in totals.items()],
            },
        )
        logger.info('Order %s created by %s (%s line(s))', number, identity.user_id, len(lines))
        return OrderService.get_order(order.pk)

    @staticmethod
    @transaction.atomic
    def deactivate_order(*, identity: RequesterIdentity, order_id) -> Order:
        """Created -> Deactivated. Stock is not restored."""
        order = OrderService.get_order(order_id)
        if not order.is_active:
            return order
        old_values = AuditService.snapshot(order, fields=ORDER_AUDIT_FIELDS)
        order.deactivate(user_id=identity.user_id)
        AuditService.log(
            identity=identity,
            action=AUDIT_ACTION_DEACTIVATE,
            model_name='Order',
            object_id=str(order.pk),
            old_values=old_values,
            new_values=AuditService.snapshot(order, fields=ORDER_AUDIT_FIELDS),
        )
        logger.info('Order %s deactivated by %s', order.number, identity.user_id)
        return order
