"""
Stock — Service Layer

StockStore: atomic mutation of Product.stock_on_hand (unconditional delta and
guarded decrement). StockLedger: append-only movements and balance
reconstruction. Callers own the transaction; nothing here commits on its own.

@file stock/services.py
"""

import logging
from datetime import datetime
from uuid import UUID

from django.db.models import Case, F, IntegerField, Sum, Value, When

from catalog.models import Product
from core.exceptions import BusinessRuleViolation, ResourceNotFoundError, TransientStoreError

from .models import INBOUND_KINDS, OUTBOUND_KINDS, StockMovement

logger = logging.getLogger('distribuidora')


def kind_for_delta(delta: int, inbound: str = StockMovement.Kind.ADJUST_IN,
                   outbound: str = StockMovement.Kind.ADJUST_OUT) -> str:
    """Movement kind for a signed delta (zero is not a movement)."""
    if delta == 0:
        raise BusinessRuleViolation('Un movimiento de stock no puede tener cantidad cero.')
    return inbound if delta > 0 else outbound


class StockService:
    """Live stock counter plus its immutable ledger."""

    # ------------------------------------------------------------------
    # StockStore
    # ------------------------------------------------------------------

    @staticmethod
    def current_stock(product_id) -> int:
        try:
            return Product.objects.values_list('stock_on_hand', flat=True).get(pk=product_id)
        except Product.DoesNotExist:
            raise ResourceNotFoundError(f'Producto {product_id} no encontrado.')

    @staticmethod
    def apply_delta(product_id, delta: int) -> int:
        """
        Atomically add `delta` (signed) to stock_on_hand and return the new value.
        Must run inside the caller's transaction.
        """
        updated = Product.objects.filter(pk=product_id).update(
            stock_on_hand=F('stock_on_hand') + delta,
        )
        if updated != 1:
            logger.error('Stock delta failed: product=%s delta=%s', product_id, delta)
            raise TransientStoreError(
                f'No se pudo actualizar el stock del producto {product_id}.',
            )
        return StockService.current_stock(product_id)

    @staticmethod
    def decrement_if_available(product_id, quantity: int) -> int | None:
        """
        Conditional decrement: subtracts only while stock_on_hand >= quantity.
        Returns the new stock, or None when the guard did not hold.
        """
        if quantity <= 0:
            raise BusinessRuleViolation('La cantidad debe ser un entero distinto de cero')
        updated = Product.objects.filter(
            pk=product_id, stock_on_hand__gte=quantity,
        ).update(stock_on_hand=F('stock_on_hand') - quantity)
        if updated == 0:
            logger.warning('Guarded decrement rejected: product=%s quantity=%s', product_id, quantity)
            return None
        return StockService.current_stock(product_id)

    # ------------------------------------------------------------------
    # StockLedger
    # ------------------------------------------------------------------

    @staticmethod
    def record_movement(
        *,
        product_id,
        kind: str,
        quantity: int,
        reference_type: str,
        reference_id: UUID,
        reference_number: str = '',
        occurred_at: datetime,
        recorded_by_id=None,
    ) -> StockMovement:
        """Append one movement. quantity is the positive magnitude."""
        if kind not in INBOUND_KINDS and kind not in OUTBOUND_KINDS:
            raise BusinessRuleViolation(f'Tipo de movimiento inválido: {kind}')
        if not isinstance(quantity, int) or quantity <= 0:
            raise BusinessRuleViolation('La cantidad de un movimiento debe ser un entero positivo.')
        return StockMovement.objects.create(
            product_id=product_id,
            kind=kind,
            quantity=quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            reference_number=reference_number,
            occurred_at=occurred_at,
            recorded_by_id=recorded_by_id,
        )

    @staticmethod
    def ledger_balance(product_id, until: datetime | None = None) -> int:
        """Net stock rebuilt from the ledger (inbound - outbound), optionally up to `until`."""
        qs = StockMovement.objects.filter(product_id=product_id)
        if until is not None:
            qs = qs.filter(occurred_at__lte=until)
        result = qs.aggregate(
            in_sum=Sum(
                Case(
                    When(kind__in=INBOUND_KINDS, then='quantity'),
                    default=Value(0),
                    output_field=IntegerField(),
                ),
            ),
            out_sum=Sum(
                Case(
                    When(kind__in=OUTBOUND_KINDS, then='quantity'),
                    default=Value(0),
                    output_field=IntegerField(),
                ),
            ),
        )
        return (result['in_sum'] or 0) - (result['out_sum'] or 0)

    @staticmethod
    def balance_report(product_id) -> dict:
        """Live counter next to the ledger reconstruction for one product."""
        live = StockService.current_stock(product_id)
        ledger = StockService.ledger_balance(product_id)
        return {
            'producto': str(product_id),
            'stkactual': live,
            'saldoMovimientos': ledger,
            'diferencia': live - ledger,
        }
