"""
Allocations — stock held by intermediaries (assign, consume, restore, return).

AllocationMutator is the only writer of Allocation.remaining_quantity.
AllocationRegistry moves quantity between shop stock and allocations.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from consignman.exceptions import StockError
from consignman.models.allocation import Allocation
from consignman.models.enums import AllocationDirection, AllocationStatus, MovementKind
from consignman.services.quantities import require_positive, to_quantity
from consignman.services.stock import StockMutator
from consignman.services.versioning import update_with_version

logger = logging.getLogger('consignman')


class AllocationMutator:
    """Consume/restore of an allocation's remaining quantity."""

    @classmethod
    def adjust(cls, product_id: str, intermediary_id: str, quantity: Decimal,
               direction: str) -> Allocation:
        """
        Consume or restore quantity of the intermediary's allocation.

        consume:
            Requires status ASSIGNED and remaining >= quantity.
            Reaching exactly 0 → SOLD, sold_at stamped.
        restore:
            Adds quantity back. A SOLD or RETURNED allocation re-opens
            to ASSIGNED. Never creates an allocation.

        Raises:
            StockError('ALLOCATION_NOT_FOUND'): No allocation for the pair
            StockError('INSUFFICIENT_ALLOCATION'): consume beyond remaining
            StockError('ALLOCATION_OVERFLOW'): restore beyond assigned
            StockError('INVALID_QUANTITY'): quantity is zero or finer than 0.001
            StockError('INVALID_DIRECTION'): direction is neither consume nor restore
            StockError('CONCURRENT_MODIFICATION'): retries exhausted
        """
        ids = {'product_id': product_id, 'intermediary_id': intermediary_id}
        # Callers may pass the signed delta; direction decides the sign.
        quantity = require_positive(abs(to_quantity(quantity, **ids)), **ids)
        if direction not in AllocationDirection.values:
            raise StockError('INVALID_DIRECTION', direction=direction, **ids)

        not_found = StockError('ALLOCATION_NOT_FOUND', **ids)
        allocation_pk = (
            Allocation.objects.filter(**ids)
            .values_list('pk', flat=True)
            .first()
        )
        if allocation_pk is None:
            raise not_found

        if direction == AllocationDirection.CONSUME:
            mutate = cls._consume(quantity, ids)
        else:
            mutate = cls._restore(quantity, ids)

        allocation = update_with_version(
            Allocation.objects, allocation_pk, mutate, not_found=not_found,
        )
        logger.info(
            f"allocation.{direction}",
            extra={
                **ids,
                "qty": str(quantity),
                "remaining": str(allocation.remaining_quantity),
                "status": allocation.status,
            },
        )
        return allocation

    @staticmethod
    def _consume(quantity, ids):
        def mutate(allocation):
            if (allocation.status != AllocationStatus.ASSIGNED
                    or allocation.remaining_quantity < quantity):
                raise StockError(
                    'INSUFFICIENT_ALLOCATION',
                    available=allocation.remaining_quantity,
                    requested=quantity,
                    status=allocation.status,
                    allocation_id=allocation.pk,
                    **ids,
                )
            remaining = allocation.remaining_quantity - quantity
            changes = {'remaining_quantity': remaining}
            if remaining == 0:
                changes['status'] = AllocationStatus.SOLD
                changes['sold_at'] = timezone.now()
            return changes
        return mutate

    @staticmethod
    def _restore(quantity, ids):
        def mutate(allocation):
            remaining = allocation.remaining_quantity + quantity
            if remaining > allocation.assigned_quantity:
                raise StockError(
                    'ALLOCATION_OVERFLOW',
                    assigned=allocation.assigned_quantity,
                    remaining=allocation.remaining_quantity,
                    requested=quantity,
                    allocation_id=allocation.pk,
                    **ids,
                )
            changes = {'remaining_quantity': remaining}
            if allocation.status != AllocationStatus.ASSIGNED:
                changes['status'] = AllocationStatus.ASSIGNED
            return changes
        return mutate


class AllocationRegistry:
    """Assignment to and return from intermediaries, plus queries."""

    @classmethod
    def assign(cls, shop_id: str, product_id: str, intermediary_id: str,
               quantity: Decimal, assigned_by: str) -> Allocation:
        """
        Hand shop stock to an intermediary.

        1. Check the shop has the quantity on hand
        2. Create the allocation, or top up the existing one
           (assigned and remaining both += quantity, status → ASSIGNED)
        3. Decrement shop stock

        Raises:
            StockError('INVALID_QUANTITY'): If quantity <= 0
            StockError('STOCK_RECORD_NOT_FOUND'): If the SKU was never stocked
            StockError('INSUFFICIENT_STOCK'): If on_hand < quantity
            StockError('ALLOCATION_SHOP_MISMATCH'): The intermediary already holds
                this product from another shop

        Concurrency:
            - Runs under transaction.atomic(); steps 2 and 3 commit together
            - Both rows use versioned conditional updates
        """
        ids = {'shop_id': shop_id, 'product_id': product_id, 'intermediary_id': intermediary_id}
        quantity = require_positive(quantity, **ids)

        on_hand = StockMutator.get_on_hand(shop_id, product_id)
        if on_hand < quantity:
            raise StockError('INSUFFICIENT_STOCK', available=on_hand,
                             requested=quantity, **ids)

        with transaction.atomic():
            allocation, created = Allocation.objects.get_or_create(
                product_id=product_id,
                intermediary_id=intermediary_id,
                defaults={
                    'shop_id': shop_id,
                    'assigned_quantity': quantity,
                    'remaining_quantity': quantity,
                    'status': AllocationStatus.ASSIGNED,
                    'assigned_by': assigned_by,
                },
            )

            if not created:
                if allocation.shop_id != shop_id:
                    raise StockError('ALLOCATION_SHOP_MISMATCH', **ids,
                                     allocation_id=allocation.pk,
                                     allocation_shop_id=allocation.shop_id)

                def top_up(current):
                    return {
                        'assigned_quantity': current.assigned_quantity + quantity,
                        'remaining_quantity': current.remaining_quantity + quantity,
                        'status': AllocationStatus.ASSIGNED,
                    }

                allocation = update_with_version(
                    Allocation.objects, allocation.pk, top_up,
                    not_found=StockError('ALLOCATION_NOT_FOUND', **ids),
                )

            StockMutator.adjust(
                shop_id, product_id, -quantity,
                kind=MovementKind.ALLOCATE,
                reference=allocation.allocation_ref,
                reason=f"Assigned to {intermediary_id}",
                actor_id=assigned_by,
            )

        logger.info(
            "allocation.assign",
            extra={
                **ids,
                "qty": str(quantity),
                "new_allocation": created,
                "assigned": str(allocation.assigned_quantity),
                "remaining": str(allocation.remaining_quantity),
            },
        )
        return allocation

    @classmethod
    def return_to_shop(cls, allocation_id: int, quantity: Decimal,
                       actor_id: str = '') -> Allocation:
        """
        Give unsold stock back to the shop.

        1. Require remaining >= quantity
        2. Decrement remaining; at 0 → RETURNED, returned_at stamped
        3. Credit shop stock

        assigned_quantity is cumulative and stays unchanged.

        Raises:
            StockError('INVALID_QUANTITY'): If quantity <= 0
            StockError('ALLOCATION_NOT_FOUND'): Unknown allocation
            StockError('INSUFFICIENT_ALLOCATION'): remaining < quantity
        """
        quantity = require_positive(quantity, allocation_id=allocation_id)

        def take_back(allocation):
            if allocation.remaining_quantity < quantity:
                raise StockError(
                    'INSUFFICIENT_ALLOCATION',
                    allocation_id=allocation.pk,
                    product_id=allocation.product_id,
                    intermediary_id=allocation.intermediary_id,
                    available=allocation.remaining_quantity,
                    requested=quantity,
                )
            remaining = allocation.remaining_quantity - quantity
            changes = {'remaining_quantity': remaining}
            if remaining == 0:
                changes['status'] = AllocationStatus.RETURNED
                changes['returned_at'] = timezone.now()
            return changes

        with transaction.atomic():
            allocation = update_with_version(
                Allocation.objects, allocation_id, take_back,
                not_found=StockError('ALLOCATION_NOT_FOUND', allocation_id=allocation_id),
            )
            StockMutator.adjust(
                allocation.shop_id, allocation.product_id, quantity,
                kind=MovementKind.RETURN,
                reference=allocation.allocation_ref,
                reason=f"Returned by {allocation.intermediary_id}",
                actor_id=actor_id,
            )

        logger.info(
            "allocation.return",
            extra={
                "allocation_id": allocation.pk,
                "intermediary_id": allocation.intermediary_id,
                "qty": str(quantity),
                "remaining": str(allocation.remaining_quantity),
                "status": allocation.status,
            },
        )
        return allocation

    @classmethod
    def get_remaining(cls, product_id: str, intermediary_id: str) -> Decimal:
        """Quantity the intermediary currently holds (0 when none)."""
        value = (
            Allocation.objects.filter(product_id=product_id, intermediary_id=intermediary_id)
            .values_list('remaining_quantity', flat=True)
            .first()
        )
        return value if value is not None else Decimal('0')

    @classmethod
    def get_allocation(cls, product_id: str, intermediary_id: str) -> Allocation | None:
        return Allocation.objects.filter(
            product_id=product_id, intermediary_id=intermediary_id,
        ).first()

    @classmethod
    def list_allocations(cls, intermediary_id: str | None = None,
                         shop_id: str | None = None, status: str | None = None,
                         holding_only: bool = False):
        """List allocations with filters, newest first."""
        qs = Allocation.objects.all()

        if intermediary_id is not None:
            qs = qs.filter(intermediary_id=intermediary_id)
        if shop_id is not None:
            qs = qs.filter(shop_id=shop_id)
        if status is not None:
            qs = qs.filter(status=status)
        if holding_only:
            qs = qs.holding()

        return qs.order_by('-created_at', '-pk')

    @classmethod
    def total_allocated(cls, shop_id: str, product_id: str) -> Decimal:
        """Σ remaining over every allocation of a SKU."""
        return Allocation.objects.for_sku(shop_id, product_id).aggregate(
            t=Coalesce(Sum('remaining_quantity'), Decimal('0'))
        )['t']
