"""
Order and OrderLine models — sales whose quantity effects are reconciled.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from consignman.models.enums import ActorRole, OrderStatus, PaymentMethod


class Order(models.Model):
    """
    A sale by a seller, an agent or shop staff.

    LIFECYCLE:

        ┌───────┐   apply()   ┌───────────┐   reverse()   ┌───────────┐
        │ DRAFT │ ──────────► │ COMPLETED │ ────────────► │ CANCELLED │
        └───────┘             └───────────┘               └───────────┘
            │ discard
            ▼
         deleted (drafts never touch stock)
    """

    order_id = models.PositiveIntegerField(
        unique=True,
        verbose_name=_('Order number'),
    )
    seller_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Seller'))
    seller_role = models.CharField(
        max_length=20,
        choices=ActorRole.choices,
        verbose_name=_('Seller role'),
    )
    store_owner_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Store owner'),
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
        verbose_name=_('Payment method'),
    )
    total_sum = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Total'),
    )

    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=64, blank=True, default='')
    cancellation_reason = models.CharField(max_length=255, blank=True, default='')

    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering = ['-order_id']
        indexes = [
            models.Index(fields=['seller_id', 'status'], name='order_seller_status_idx'),
        ]

    @property
    def order_ref(self) -> str:
        """Reference used on ledger movements."""
        return f"order:{self.order_id}"

    @property
    def is_draft(self) -> bool:
        return self.status == OrderStatus.DRAFT

    def compute_total(self) -> Decimal:
        return sum(
            (line.price * line.quantity for line in self.lines.all()),
            Decimal('0'),
        )

    def __str__(self) -> str:
        return f"#{self.order_id} {self.seller_id} ({self.status})"


class OrderLine(models.Model):
    """
    Line item of an order.

    price, unit and unit_size are point-in-time snapshots. via_allocation and
    allocation record which pool the line consumed at apply time, so
    cancellation never has to guess.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='lines',
    )
    position = models.PositiveSmallIntegerField(default=0)

    product_id = models.CharField(max_length=64, verbose_name=_('Product'))
    shop_id = models.CharField(max_length=64, verbose_name=_('Shop'))
    name = models.CharField(max_length=255, blank=True, default='')

    quantity = models.DecimalField(max_digits=12, decimal_places=3, verbose_name=_('Quantity'))
    price = models.DecimalField(max_digits=14, decimal_places=2, verbose_name=_('Unit price'))
    unit = models.CharField(max_length=20, default='pcs')
    unit_size = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('1'))

    via_allocation = models.BooleanField(default=False)
    allocation = models.ForeignKey(
        'consignman.Allocation',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='order_lines',
    )

    class Meta:
        verbose_name = _('Order line')
        verbose_name_plural = _('Order lines')
        ordering = ['order', 'position']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name='order_line_quantity_positive',
            ),
            models.CheckConstraint(
                condition=Q(price__gte=0),
                name='order_line_price_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['shop_id', 'product_id'], name='order_line_sku_idx'),
        ]

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def __str__(self) -> str:
        return f"{self.quantity} {self.unit} × {self.product_id} @ {self.price}"
