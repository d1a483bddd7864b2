"""
Documents — Models

Inventory documents (Remito R, Nota de Recepción NR, Ajuste AJ), their line
items, the per-(type, prefix) sequence counter and time-bounded sequence
reservations.

Numbering: display_number = prefix + type + zero-padded(sequence, 8).
(type, prefix, sequence) is unique across all rows, so a number is never
reused even after deactivation; display_number is unique among active rows.

@file documents/models.py
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import ActivableModel, BaseModel

from .numbering import OPERATION_DECREMENT, OPERATION_INCREMENT


class DocumentType(models.TextChoices):
    RECEIPT = 'R', _('Remito')
    RECEPTION_NOTE = 'NR', _('Nota de recepción')
    ADJUSTMENT = 'AJ', _('Ajuste de inventario')


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class Document(ActivableModel):
    """
    Inventory document. Created once; afterwards only provider, item date,
    notes, items and the active flag may change. Never hard-deleted.
    """

    class AdjustmentOperation(models.TextChoices):
        NONE = '', _('Signed quantities')
        INCREMENT = OPERATION_INCREMENT, _('Increment')
        DECREMENT = OPERATION_DECREMENT, _('Decrement')

    doc_type = models.CharField(
        _('type'), max_length=2,
        choices=DocumentType.choices, db_index=True,
    )
    prefix = models.CharField(_('prefix'), max_length=10)
    sequence = models.PositiveIntegerField(_('sequence'))
    display_number = models.CharField(_('document number'), max_length=30, db_index=True)
    provider = models.ForeignKey(
        'catalog.Provider',
        on_delete=models.PROTECT,
        related_name='documents',
        verbose_name=_('provider'),
    )
    item_date = models.DateField(_('receipt date'))
    registered_at = models.DateTimeField(_('registered at'), default=timezone.now)
    adjustment_operation = models.CharField(
        _('adjustment operation'), max_length=10, blank=True,
        choices=AdjustmentOperation.choices, default=AdjustmentOperation.NONE,
    )
    notes = models.TextField(_('notes'), blank=True, default='')

    class Meta:
        verbose_name = _('inventory document')
        verbose_name_plural = _('inventory documents')
        ordering = ['-registered_at']
        constraints = [
            models.UniqueConstraint(
                fields=['doc_type', 'prefix', 'sequence'],
                name='document_unique_type_prefix_sequence',
            ),
            models.UniqueConstraint(
                fields=['display_number'],
                condition=models.Q(is_active=True),
                name='document_unique_active_number',
            ),
        ]
        indexes = [
            models.Index(fields=['doc_type', 'prefix', '-sequence'], name='document_bucket_seq_idx'),
            models.Index(fields=['provider', 'item_date']),
        ]

    def __str__(self):
        return self.display_number


class LineItem(models.Model):
    """One submitted line. quantity is signed for adjustments, positive otherwise."""

    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('document'),
    )
    position = models.PositiveSmallIntegerField(_('position'), default=0)
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='document_lines',
        verbose_name=_('product'),
    )
    product_code = models.CharField(_('product code'), max_length=40, blank=True)
    quantity = models.IntegerField(_('quantity'))

    class Meta:
        verbose_name = _('line item')
        verbose_name_plural = _('line items')
        ordering = ['document', 'position']
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(quantity=0),
                name='line_item_quantity_non_zero',
            ),
        ]

    def __str__(self):
        return f'{self.product_code or self.product_id} x {self.quantity}'


# ---------------------------------------------------------------------------
# Sequence counter: one row per (type, prefix) bucket
# ---------------------------------------------------------------------------

class DocumentSequence(models.Model):
    """
    Highest sequence committed in a bucket. Locked with SELECT ... FOR UPDATE
    for the duration of an allocation; rolled back together with the document.
    """

    doc_type = models.CharField(_('type'), max_length=2, choices=DocumentType.choices)
    prefix = models.CharField(_('prefix'), max_length=10)
    last_value = models.PositiveIntegerField(_('last sequence'), default=0)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('document sequence')
        verbose_name_plural = _('document sequences')
        constraints = [
            models.UniqueConstraint(
                fields=['doc_type', 'prefix'],
                name='document_sequence_unique_bucket',
            ),
        ]

    def __str__(self):
        return f'{self.prefix}{self.doc_type} @ {self.last_value}'


# ---------------------------------------------------------------------------
# Sequence reservation
# ---------------------------------------------------------------------------

class SequenceReservation(BaseModel):
    """
    Exclusive, time-bounded claim on (type, prefix, sequence).

    RESERVED rows past expires_at are treated as released everywhere; the
    periodic sweep only makes that visible in the table.
    """

    class State(models.TextChoices):
        RESERVED = 'RESERVED', _('Reserved')
        CONSUMED = 'CONSUMED', _('Consumed')
        RELEASED = 'RELEASED', _('Released')

    doc_type = models.CharField(_('type'), max_length=2, choices=DocumentType.choices)
    prefix = models.CharField(_('prefix'), max_length=10)
    sequence = models.PositiveIntegerField(_('sequence'))
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sequence_reservations',
        verbose_name=_('requested by'),
    )
    state = models.CharField(
        _('state'), max_length=10,
        choices=State.choices, default=State.RESERVED, db_index=True,
    )
    expires_at = models.DateTimeField(_('expires at'), db_index=True)
    consumed_at = models.DateTimeField(_('consumed at'), null=True, blank=True)
    released_at = models.DateTimeField(_('released at'), null=True, blank=True)
    document = models.OneToOneField(
        Document,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='reservation',
        verbose_name=_('document'),
    )

    class Meta:
        verbose_name = _('sequence reservation')
        verbose_name_plural = _('sequence reservations')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['doc_type', 'prefix', 'sequence'],
                condition=models.Q(state__in=['RESERVED', 'CONSUMED']),
                name='reservation_unique_claimed_sequence',
            ),
            models.UniqueConstraint(
                fields=['doc_type', 'prefix', 'requested_by'],
                condition=models.Q(state='RESERVED'),
                name='reservation_one_open_per_requester',
            ),
        ]

    def __str__(self):
        return f'{self.prefix}{self.doc_type}{self.sequence:08d} ({self.state})'

    def is_live(self, now=None) -> bool:
        now = now or timezone.now()
        return self.state == self.State.RESERVED and self.expires_at > now
