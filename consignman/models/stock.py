"""
StockRecord model — on-hand quantity of one SKU inside one shop.
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger('consignman')


class StockRecordManager(models.Manager):
    """Manager with helper methods for StockRecord queries."""

    def for_sku(self, shop_id: str, product_id: str):
        """Filter the record of one SKU."""
        return self.filter(shop_id=shop_id, product_id=product_id)

    def for_shop(self, shop_id: str):
        """Filter records of a shop."""
        return self.filter(shop_id=shop_id)

    def in_stock(self):
        """Only records with something on hand."""
        return self.filter(on_hand__gt=0)


class StockRecord(models.Model):
    """
    Quantity of a product sitting in a shop's own stock.

    Rules:
    - on_hand never goes negative
    - on_hand is a cache of the StockMovement ledger
    - only StockMutator writes on_hand, via a conditional update on version
    """

    shop_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name=_('Shop'),
    )
    product_id = models.CharField(
        max_length=64,
        verbose_name=_('Product'),
    )

    on_hand = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('On hand'),
    )
    unit = models.CharField(
        max_length=20,
        default='pcs',
        verbose_name=_('Unit'),
    )
    unit_size = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('1'),
        verbose_name=_('Unit size'),
    )

    version = models.PositiveIntegerField(default=0, editable=False)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(default=timezone.now)

    objects = StockRecordManager()

    class Meta:
        verbose_name = _('Stock record')
        verbose_name_plural = _('Stock records')
        constraints = [
            models.UniqueConstraint(
                fields=['shop_id', 'product_id'],
                name='unique_stock_record_sku',
            ),
            models.CheckConstraint(
                condition=Q(on_hand__gte=0),
                name='stock_record_on_hand_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['product_id'], name='stock_record_product_idx'),
        ]

    @property
    def sku(self) -> str:
        return f"{self.shop_id}/{self.product_id}"

    def ledger_balance(self) -> Decimal:
        """Sum of every movement delta recorded for this SKU."""
        return self.movements.aggregate(
            t=Coalesce(Sum('delta'), Decimal('0'))
        )['t']

    def recalculate(self) -> Decimal:
        """
        Rebuild on_hand from the movement ledger.

        Use for integrity audit or correction after detected drift.

        Returns:
            New calculated quantity
        """
        total = self.ledger_balance()

        if total != self.on_hand:
            old = self.on_hand
            StockRecord.objects.filter(pk=self.pk).update(
                on_hand=total,
                version=models.F('version') + 1,
                updated_at=timezone.now(),
            )
            self.refresh_from_db()
            logger.warning(
                "stock.recalculated",
                extra={
                    "sku": self.sku,
                    "old": str(old),
                    "new": str(total),
                    "diff": str(total - old),
                },
            )

        return total

    def __str__(self) -> str:
        return f"{self.sku}: {self.on_hand} {self.unit}"
