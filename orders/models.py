"""
Orders — Models

Sales orders (comandas) numbered from a singleton counter. Preparation and
delivery states belong to other collaborators; the engine only creates
orders and deactivates them.

@file orders/models.py
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import ActivableModel


class OrderCounter(models.Model):
    """
    Singleton order-number counter. Only OrderService touches it, always
    through a locked increment inside the order's transaction.
    """

    SINGLETON_KEY = 'comandas'

    key = models.CharField(_('key'), max_length=20, primary_key=True, default=SINGLETON_KEY)
    last_number = models.PositiveIntegerField(_('last order number'), default=0)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('order counter')
        verbose_name_plural = _('order counter')

    def __str__(self):
        return f'{self.key} @ {self.last_number}'


class Order(ActivableModel):
    number = models.PositiveIntegerField(_('order number'), unique=True)
    client = models.ForeignKey(
        'catalog.Client',
        on_delete=models.PROTECT,
        related_name='orders',
        verbose_name=_('client'),
    )
    delivery_truck = models.ForeignKey(
        'catalog.Truck',
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='orders',
        verbose_name=_('delivery truck'),
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='driven_orders',
        verbose_name=_('driver'),
    )
    order_date = models.DateTimeField(_('order date'), default=timezone.now, db_index=True)
    delivery_date = models.DateTimeField(_('delivery date'), null=True, blank=True)

    class Meta:
        verbose_name = _('order')
        verbose_name_plural = _('orders')
        ordering = ['-number']

    def __str__(self):
        return f'Comanda {self.number}'


class OrderItem(models.Model):
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('order'),
    )
    position = models.PositiveSmallIntegerField(_('position'), default=0)
    price_list = models.ForeignKey(
        'catalog.PriceList',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('price list'),
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='order_lines',
        verbose_name=_('product'),
    )
    quantity = models.PositiveIntegerField(_('quantity'))
    amount = models.DecimalField(_('amount'), max_digits=14, decimal_places=2)
    delivered_quantity = models.PositiveIntegerField(_('delivered quantity'), default=0)
    delivered = models.BooleanField(_('delivered'), default=False)

    class Meta:
        verbose_name = _('order item')
        verbose_name_plural = _('order items')
        ordering = ['order', 'position']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='order_item_quantity_positive',
            ),
            models.CheckConstraint(
                condition=models.Q(delivered_quantity__lte=models.F('quantity')),
                name='order_item_delivered_lte_quantity',
            ),
        ]

    def __str__(self):
        return f'{self.product_id} x {self.quantity}'
