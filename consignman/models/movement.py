"""
StockMovement model — Immutable ledger of on-hand changes.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from consignman.models.enums import MovementKind


class StockMovement(models.Model):
    """
    Immutable record of an on-hand change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new movements with inverse delta
    - Written by StockMutator in the same transaction as the on_hand update
    """

    record = models.ForeignKey(
        'consignman.StockRecord',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Stock record'),
    )

    delta = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Delta'),
        help_text=_('Positive = in, negative = out'),
    )
    kind = models.CharField(
        max_length=20,
        choices=MovementKind.choices,
        db_index=True,
        verbose_name=_('Kind'),
    )

    # "order:1001", "allocation:7"
    reference = models.CharField(
        max_length=64,
        blank=True,
        default='',
        db_index=True,
        verbose_name=_('Reference'),
    )
    reason = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Reason'))
    actor_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Actor'))
    metadata = models.JSONField(default=dict, blank=True)

    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _('Stock movement')
        verbose_name_plural = _('Stock movements')
        ordering = ['timestamp', 'pk']
        indexes = [
            models.Index(fields=['record', 'timestamp'], name='movement_record_ts_idx'),
            models.Index(fields=['record', 'kind'], name='movement_record_kind_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Movements are immutable. "
                "Record a new movement with the inverse delta instead."
            )
        if not self.delta:
            raise ValueError("Movement delta must not be zero")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(
            "Movements are immutable. "
            "Record a new movement with the inverse delta instead."
        )

    def __str__(self) -> str:
        signal = '+' if self.delta > 0 else ''
        return f"{signal}{self.delta} | {self.kind} {self.reference}".rstrip()
