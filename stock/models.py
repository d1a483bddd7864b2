"""
Stock — Models

Append-only stock ledger. The live counter is Product.stock_on_hand; each
change to it made by a document or an order leaves one StockMovement row
here so historical stock can be rebuilt independently of the counter.
Records are INSERT ONLY — never update or delete.

@file stock/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class StockMovement(models.Model):
    """
    A single immutable stock movement (insert only).

    quantity is always a positive magnitude; the kind carries the direction.
    reference_type + reference_id point at the Document or Order that caused it.
    """

    class Kind(models.TextChoices):
        PURCHASE = 'COMPRA', _('Purchase')
        SALE = 'VENTA', _('Sale')
        RETURN = 'DEVOLUCION', _('Return')
        ADJUST_IN = 'AJUSTE+', _('Adjustment (+)')
        ADJUST_OUT = 'AJUSTE-', _('Adjustment (-)')

    class ReferenceType(models.TextChoices):
        DOCUMENT = 'Document', _('Inventory document')
        ORDER = 'Order', _('Order')

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False,
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='stock_movements',
        verbose_name=_('product'),
    )
    kind = models.CharField(
        _('movement kind'), max_length=12,
        choices=Kind.choices, db_index=True,
    )
    quantity = models.PositiveIntegerField(_('quantity'))
    reference_type = models.CharField(
        _('reference type'), max_length=20,
        choices=ReferenceType.choices,
    )
    reference_id = models.UUIDField(_('reference ID'), db_index=True)
    reference_number = models.CharField(
        _('reference number'), max_length=20, blank=True,
        help_text=_('Document display number or order number, denormalised for reading'),
    )
    occurred_at = models.DateTimeField(_('occurred at'), db_index=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('recorded by'),
    )
    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )
    # No updated_at: rows are never edited.

    class Meta:
        verbose_name = _('stock movement')
        verbose_name_plural = _('stock movements')
        ordering = ['-occurred_at', '-created_at']
        indexes = [
            models.Index(fields=['product', 'occurred_at'], name='stock_product_occurred_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='stock_reference_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='stock_movement_quantity_positive',
            ),
        ]

    def __str__(self):
        return f'{self.kind} {self.quantity} product={self.product_id} ref={self.reference_number}'

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.kind in INBOUND_KINDS else -self.quantity

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError('StockMovement is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('StockMovement records cannot be deleted.')


INBOUND_KINDS = {
    StockMovement.Kind.PURCHASE,
    StockMovement.Kind.RETURN,
    StockMovement.Kind.ADJUST_IN,
}
OUTBOUND_KINDS = {
    StockMovement.Kind.SALE,
    StockMovement.Kind.ADJUST_OUT,
}
