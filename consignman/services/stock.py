"""
Stock mutations — the only writers of StockRecord.on_hand.

Every change is a versioned conditional update plus one StockMovement,
both inside transaction.atomic().
"""

import logging
from decimal import Decimal

from django.db import transaction

from consignman.conf import consignman_settings
from consignman.exceptions import StockError
from consignman.models.enums import MovementKind
from consignman.models.movement import StockMovement
from consignman.models.stock import StockRecord
from consignman.services.quantities import require_positive, to_quantity
from consignman.services.versioning import update_with_version

logger = logging.getLogger('consignman')


class StockMutator:
    """On-hand stock mutation methods."""

    @classmethod
    def adjust(cls, shop_id: str, product_id: str, delta: Decimal, *,
               kind: str, reference: str = '', reason: str = '',
               actor_id: str = '', **metadata) -> StockRecord:
        """
        Apply a signed delta to a SKU's on-hand quantity.

        Raises:
            StockError('INVALID_QUANTITY'): If delta is zero or finer than 0.001
            StockError('STOCK_RECORD_NOT_FOUND'): If the SKU was never stocked
            StockError('INSUFFICIENT_STOCK'): If on_hand + delta < 0
            StockError('CONCURRENT_MODIFICATION'): If retries are exhausted

        Concurrency:
            - Runs under transaction.atomic()
            - Conditional update on StockRecord.version, retried on conflict
            - No partial effect on failure
        """
        delta = to_quantity(delta, shop_id=shop_id, product_id=product_id)
        if delta == 0:
            raise StockError('INVALID_QUANTITY', shop_id=shop_id,
                             product_id=product_id, requested=delta)

        record_pk = (
            StockRecord.objects.for_sku(shop_id, product_id)
            .values_list('pk', flat=True)
            .first()
        )
        not_found = StockError('STOCK_RECORD_NOT_FOUND', shop_id=shop_id, product_id=product_id)
        if record_pk is None:
            raise not_found

        def mutate(record):
            new_quantity = record.on_hand + delta
            new_quantity = to_quantity(new_quantity, shop_id=shop_id, product_id=product_id)
            if new_quantity < 0:
                raise StockError(
                    'INSUFFICIENT_STOCK',
                    shop_id=shop_id,
                    product_id=product_id,
                    available=record.on_hand,
                    requested=-delta,
                )
            return {'on_hand': new_quantity}

        with transaction.atomic():
            record = update_with_version(
                StockRecord.objects, record_pk, mutate, not_found=not_found,
            )
            StockMovement.objects.create(
                record=record,
                delta=delta,
                kind=kind,
                reference=reference,
                reason=reason,
                actor_id=actor_id,
                metadata=metadata,
            )

        logger.info(
            "stock.adjust",
            extra={
                "sku": record.sku,
                "delta": str(delta),
                "kind": kind,
                "reference": reference,
                "on_hand": str(record.on_hand),
            },
        )
        return record

    @classmethod
    def receive(cls, shop_id: str, product_id: str, quantity: Decimal, *,
                unit: str | None = None, unit_size: Decimal | None = None,
                reason: str = 'Received', actor_id: str = '',
                **metadata) -> StockRecord:
        """
        Stock entry.

        Creates the StockRecord on first stocking, then credits on_hand.

        Raises:
            StockError('INVALID_QUANTITY'): If quantity <= 0 or finer than 0.001
        """
        quantity = require_positive(quantity, shop_id=shop_id, product_id=product_id)

        defaults = {
            'unit': unit or consignman_settings.DEFAULT_UNIT,
            'unit_size': unit_size or consignman_settings.DEFAULT_UNIT_SIZE,
        }
        if metadata.get('name'):
            defaults['metadata'] = {'name': metadata['name']}

        with transaction.atomic():
            record, created = StockRecord.objects.get_or_create(
                shop_id=shop_id,
                product_id=product_id,
                defaults=defaults,
            )
            if created:
                logger.info("stock.record.created", extra={"sku": record.sku})

            return cls.adjust(
                shop_id, product_id, quantity,
                kind=MovementKind.RECEIVE,
                reason=reason,
                actor_id=actor_id,
                **metadata,
            )

    @classmethod
    def recount(cls, shop_id: str, product_id: str, new_quantity: Decimal,
                reason: str, actor_id: str = '') -> StockRecord | None:
        """
        Inventory correction after a physical count.

        Calculates delta automatically: new_quantity - on_hand

        Returns:
            Updated record, or None when the count matches

        Raises:
            StockError('REASON_REQUIRED'): If reason is empty
            StockError('INVALID_QUANTITY'): If new_quantity < 0 or finer than 0.001
        """
        if not reason:
            raise StockError('REASON_REQUIRED', shop_id=shop_id, product_id=product_id)
        new_quantity = to_quantity(new_quantity, shop_id=shop_id, product_id=product_id)
        if new_quantity < 0:
            raise StockError('INVALID_QUANTITY', shop_id=shop_id,
                             product_id=product_id, requested=new_quantity)

        with transaction.atomic():
            record = StockRecord.objects.select_for_update().filter(
                shop_id=shop_id, product_id=product_id,
            ).first()
            if record is None:
                raise StockError('STOCK_RECORD_NOT_FOUND', shop_id=shop_id, product_id=product_id)

            delta = new_quantity - record.on_hand
            if delta == 0:
                return None

            return cls.adjust(
                shop_id, product_id, delta,
                kind=MovementKind.RECOUNT,
                reason=f"Recount: {reason}",
                actor_id=actor_id,
            )

    @classmethod
    def get_on_hand(cls, shop_id: str, product_id: str) -> Decimal:
        """On-hand quantity of a SKU (0 when never stocked)."""
        value = (
            StockRecord.objects.for_sku(shop_id, product_id)
            .values_list('on_hand', flat=True)
            .first()
        )
        return value if value is not None else Decimal('0')
