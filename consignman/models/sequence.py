"""
OrderSequence model — atomic counter for human order numbers.
"""

from django.db import models, transaction
from django.utils.translation import gettext_lazy as _


class OrderSequence(models.Model):
    """
    Named counter row.

    Numbers are handed out under a row lock, so concurrent orders never
    receive the same number (unlike "max existing + 1").
    """

    name = models.CharField(max_length=50, unique=True)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _('Order sequence')
        verbose_name_plural = _('Order sequences')

    @classmethod
    def next_value(cls, name: str = 'order', start: int = 1) -> int:
        """Reserve and return the next number of the sequence."""
        with transaction.atomic():
            cls.objects.get_or_create(name=name, defaults={'last_value': start - 1})
            seq = cls.objects.select_for_update().get(name=name)
            seq.last_value += 1
            seq.save(update_fields=['last_value'])
            return seq.last_value

    def __str__(self) -> str:
        return f"{self.name}: {self.last_value}"
