"""
Enums for Consignman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MovementKind(models.TextChoices):
    """
    Why on-hand stock changed.

    RECEIVE and RECOUNT bring stock into existence (they count towards the
    total ever stocked). The others move stock between pools.
    """
    RECEIVE = 'receive', _('Received')        # New stock delivered to the shop
    RECOUNT = 'recount', _('Recount')         # Inventory correction
    ALLOCATE = 'allocate', _('Allocated')     # Handed to an intermediary
    RETURN = 'return', _('Returned')          # Intermediary gave stock back
    SALE = 'sale', _('Sale')                  # Sold directly from the shop
    CANCEL = 'cancel', _('Cancellation')      # Direct sale reversed


STOCKING_KINDS = [MovementKind.RECEIVE, MovementKind.RECOUNT]


class AllocationStatus(models.TextChoices):
    """Allocation lifecycle status."""
    ASSIGNED = 'assigned', _('Assigned')  # Intermediary holds stock
    SOLD = 'sold', _('Sold out')          # Consumed to zero by sales
    RETURNED = 'returned', _('Returned')  # Zeroed by a return to the shop


class AllocationDirection(models.TextChoices):
    """Direction of an allocation adjustment."""
    CONSUME = 'consume', _('Consume')
    RESTORE = 'restore', _('Restore')


class OrderStatus(models.TextChoices):
    """Order lifecycle status."""
    DRAFT = 'draft', _('Draft')              # Being edited, no stock effect
    COMPLETED = 'completed', _('Completed')  # Quantity effects applied
    CANCELLED = 'cancelled', _('Cancelled')  # Quantity effects reversed


class PaymentMethod(models.TextChoices):
    """Opaque payment tag."""
    CASH = 'cash', _('Cash')
    CARD = 'card', _('Card')
    INSTALLMENT = 'installment', _('Installment')


class ActorRole(models.TextChoices):
    """Role of the party acting on stock."""
    SHOP_STAFF = 'shop_staff', _('Shop staff')
    AGENT = 'agent', _('Agent')
    SELLER = 'seller', _('Seller')
