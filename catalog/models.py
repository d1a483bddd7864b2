"""
Catalog — Models

Reference data the inventory engine depends on: providers, products (which
carry the live stock counter), clients, delivery trucks and price lists.
Their CRUD surface lives elsewhere; this app only defines the records and
the existence checks the engine consumes.

@file catalog/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class Provider(BaseModel):
    """Supplier that issues receipts (remitos) to the company."""

    code = models.PositiveIntegerField(_('provider code'), unique=True)
    business_name = models.CharField(_('business name'), max_length=200)
    address = models.CharField(_('address'), max_length=255, blank=True)
    phone = models.CharField(_('phone'), max_length=50, blank=True)
    tax_id = models.CharField(_('tax ID'), max_length=20, blank=True)
    is_active = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name = _('provider')
        verbose_name_plural = _('providers')
        ordering = ['business_name']

    def __str__(self):
        return f'{self.code} - {self.business_name}'


class Product(BaseModel):
    """
    Sellable product or service.

    stock_on_hand is the live counter mutated only by the stock app through
    atomic delta updates; StockMovement rows are the audit trail behind it.
    """

    class KindChoices(models.TextChoices):
        PRODUCT = 'PRODUCTO', _('Product')
        SERVICE = 'SERVICIO', _('Service')

    code = models.CharField(_('product code'), max_length=40, unique=True)
    description = models.CharField(_('description'), max_length=255)
    kind = models.CharField(
        _('kind'), max_length=10,
        choices=KindChoices.choices, default=KindChoices.PRODUCT,
    )
    vat_rate = models.DecimalField(
        _('VAT rate'), max_digits=5, decimal_places=2,
        null=True, blank=True,
    )
    stock_on_hand = models.IntegerField(_('stock on hand'), default=0)
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('product')
        verbose_name_plural = _('products')
        ordering = ['description']
        indexes = [
            models.Index(fields=['is_active', 'description']),
            models.Index(fields=['is_active', 'code']),
        ]

    def __str__(self):
        return f'{self.code} - {self.description}'


class Client(BaseModel):
    code = models.PositiveIntegerField(_('client code'), unique=True, null=True, blank=True)
    business_name = models.CharField(_('business name'), max_length=200)
    address = models.CharField(_('address'), max_length=255, blank=True)
    phone = models.CharField(_('phone'), max_length=50, blank=True)
    is_active = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name = _('client')
        verbose_name_plural = _('clients')
        ordering = ['business_name']

    def __str__(self):
        return self.business_name


class Truck(BaseModel):
    name = models.CharField(_('truck'), max_length=100)
    plate = models.CharField(_('licence plate'), max_length=20, unique=True)
    is_active = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name = _('truck')
        verbose_name_plural = _('trucks')
        ordering = ['name']

    def __str__(self):
        return f'{self.name} ({self.plate})'


class PriceList(BaseModel):
    code = models.PositiveIntegerField(_('price list code'), unique=True)
    name = models.CharField(_('name'), max_length=100)
    is_active = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name = _('price list')
        verbose_name_plural = _('price lists')
        ordering = ['code']

    def __str__(self):
        return self.name
