"""
Allocation model — Stock handed from a shop to an intermediary.
"""

from decimal import Decimal

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from consignman.models.enums import AllocationStatus


class AllocationQuerySet(models.QuerySet):

    def holding(self):
        """Allocations the intermediary can still sell from."""
        return self.filter(status=AllocationStatus.ASSIGNED, remaining_quantity__gt=0)

    def for_intermediary(self, intermediary_id: str):
        return self.filter(intermediary_id=intermediary_id)

    def for_sku(self, shop_id: str, product_id: str):
        return self.filter(shop_id=shop_id, product_id=product_id)


class Allocation(models.Model):
    """
    Ledger entry of stock held by an intermediary (agent or seller).

    LIFECYCLE:

        ┌──────────┐  consume to 0   ┌──────┐
        │ ASSIGNED │ ──────────────► │ SOLD │
        └──────────┘ ◄────────────── └──────┘
             │  ▲        restore
     return  │  │ assign / restore
      to 0   ▼  │
        ┌──────────┐
        │ RETURNED │
        └──────────┘

    One row per (product_id, intermediary_id): assigning again tops up the
    same row. Rows are never deleted.
    """

    shop_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Shop'))
    product_id = models.CharField(max_length=64, verbose_name=_('Product'))
    intermediary_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name=_('Intermediary'),
    )

    assigned_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Assigned'),
        help_text=_('Cumulative quantity ever handed to the intermediary'),
    )
    remaining_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Remaining'),
        help_text=_('Not yet sold nor returned'),
    )
    status = models.CharField(
        max_length=20,
        choices=AllocationStatus.choices,
        default=AllocationStatus.ASSIGNED,
        db_index=True,
        verbose_name=_('Status'),
    )

    assigned_by = models.CharField(max_length=64, verbose_name=_('Assigned by'))
    assigned_at = models.DateTimeField(default=timezone.now)
    sold_at = models.DateTimeField(null=True, blank=True)
    returned_at = models.DateTimeField(null=True, blank=True)

    version = models.PositiveIntegerField(default=0, editable=False)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(default=timezone.now)

    objects = AllocationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Allocation')
        verbose_name_plural = _('Allocations')
        constraints = [
            models.UniqueConstraint(
                fields=['product_id', 'intermediary_id'],
                name='unique_allocation_per_intermediary',
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__gte=0),
                name='allocation_remaining_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__lte=F('assigned_quantity')),
                name='allocation_remaining_within_assigned',
            ),
        ]
        indexes = [
            models.Index(fields=['shop_id', 'product_id'], name='allocation_sku_idx'),
            models.Index(fields=['intermediary_id', 'status'], name='allocation_holder_status_idx'),
        ]

    @property
    def allocation_ref(self) -> str:
        """Reference used on ledger movements."""
        return f"allocation:{self.pk}"

    @property
    def is_holding(self) -> bool:
        return self.status == AllocationStatus.ASSIGNED and self.remaining_quantity > 0

    def __str__(self) -> str:
        return (
            f"{self.product_id} → {self.intermediary_id}: "
            f"{self.remaining_quantity}/{self.assigned_quantity} ({self.status})"
        )
