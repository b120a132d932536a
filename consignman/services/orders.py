"""
Order reconciliation — applies and reverses the quantity effects of sales.

    apply(draft)     draft → completed, consumes allocation or shop stock
    reverse(id)      completed → cancelled, puts the quantity back where it came from

Each line remembers the pool it consumed (via_allocation + allocation),
so reverse() never infers the path after the fact.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from consignman.adapters.catalog import get_catalog
from consignman.conf import consignman_settings
from consignman.exceptions import StockError
from consignman.models.enums import (
    AllocationDirection,
    MovementKind,
    OrderStatus,
    PaymentMethod,
)
from consignman.models.order import Order, OrderLine
from consignman.models.sequence import OrderSequence
from consignman.protocols.actor import Actor
from consignman.protocols.orders import LineInput, OrderDraft
from consignman.services.allocations import AllocationMutator
from consignman.services.quantities import require_positive, to_money, to_price
from consignman.services.stock import StockMutator

logger = logging.getLogger('consignman')


def _get_order(order_id: int, *, for_update: bool = False) -> Order:
    qs = Order.objects.select_for_update() if for_update else Order.objects
    try:
        return qs.get(order_id=order_id)
    except Order.DoesNotExist:
        raise StockError('ORDER_NOT_FOUND', order_id=order_id)


def _require_status(order: Order, expected: str) -> None:
    if order.status != expected:
        raise StockError(
            'INVALID_TRANSITION',
            order_id=order.order_id,
            current=order.status,
            expected=expected,
        )


def _build_lines(order: Order, lines: list[LineInput]) -> list[OrderLine]:
    """Validate inputs and snapshot catalog data into unsaved OrderLines."""
    if not lines:
        raise StockError('EMPTY_ORDER', order_id=order.order_id)

    catalog = get_catalog()
    built = []
    for index, item in enumerate(lines):
        ids = {'order_id': order.order_id, 'line': index, 'product_id': item.product_id}
        quantity = require_positive(item.quantity, **ids)
        price = to_price(item.price, **ids)

        info = catalog.get_product(item.product_id)
        if info is None:
            raise StockError('PRODUCT_NOT_FOUND', order_id=order.order_id, line=index,
                             product_id=item.product_id)

        built.append(OrderLine(
            order=order,
            position=index,
            product_id=item.product_id,
            shop_id=info.shop_id,
            name=item.name or info.name,
            quantity=quantity,
            price=price,
            unit=item.unit or info.unit or consignman_settings.DEFAULT_UNIT,
            unit_size=item.unit_size or info.unit_size or consignman_settings.DEFAULT_UNIT_SIZE,
        ))
    return built


def _replace_lines(order: Order, lines: list[LineInput]) -> None:
    built = _build_lines(order, lines)
    order.lines.all().delete()
    OrderLine.objects.bulk_create(built)
    order.total_sum = to_money(sum((line.line_total for line in built), Decimal('0')))


def _check_payment_method(payment_method: str, **ids) -> str:
    if payment_method not in PaymentMethod.values:
        raise StockError('INVALID_PAYMENT_METHOD', payment_method=payment_method, **ids)
    return payment_method


class OrderReconciler:
    """Order lifecycle and its quantity effects."""

    # ══════════════════════════════════════════════════════════════
    # DRAFTS (no stock effect)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_draft(cls, draft: OrderDraft) -> Order:
        """
        Persist an order in DRAFT status.

        Raises:
            StockError('EMPTY_ORDER'), StockError('INVALID_QUANTITY'),
            StockError('INVALID_PRICE'), StockError('PRODUCT_NOT_FOUND'),
            StockError('INVALID_PAYMENT_METHOD')

        Quantities finer than 0.001 and prices finer than 0.01 are rejected,
        never rounded.
        """
        seller: Actor = draft.seller
        with transaction.atomic():
            order = Order.objects.create(
                order_id=OrderSequence.next_value(
                    'order', start=consignman_settings.ORDER_NUMBER_START,
                ),
                seller_id=seller.actor_id,
                seller_role=seller.role,
                store_owner_id=draft.store_owner_id,
                payment_method=_check_payment_method(draft.payment_method),
                status=OrderStatus.DRAFT,
                metadata=dict(draft.metadata),
            )
            _replace_lines(order, draft.lines)
            order.save(update_fields=['total_sum'])

        logger.info(
            "order.draft.created",
            extra={"order_id": order.order_id, "seller_id": seller.actor_id,
                   "lines": len(draft.lines)},
        )
        return order

    @classmethod
    def update_draft(cls, order_id: int, lines: list[LineInput] | None = None,
                     payment_method: str | None = None,
                     store_owner_id: str | None = None) -> Order:
        """
        Edit a draft: replace its lines and/or change header fields.

        Raises:
            StockError('ORDER_NOT_FOUND'): Unknown order
            StockError('INVALID_TRANSITION'): Order is not a draft
        """
        with transaction.atomic():
            order = _get_order(order_id, for_update=True)
            _require_status(order, OrderStatus.DRAFT)

            if lines is not None:
                _replace_lines(order, lines)
            if payment_method is not None:
                order.payment_method = _check_payment_method(payment_method, order_id=order_id)
            if store_owner_id is not None:
                order.store_owner_id = store_owner_id

            order.updated_at = timezone.now()
            order.save(update_fields=['total_sum', 'payment_method',
                                      'store_owner_id', 'updated_at'])

        logger.info("order.draft.updated", extra={"order_id": order_id})
        return order

    @classmethod
    def discard_draft(cls, order_id: int) -> None:
        """
        Delete a draft. Drafts never touched stock, so nothing is reversed.

        Raises:
            StockError('ORDER_NOT_FOUND'): Unknown order
            StockError('INVALID_TRANSITION'): Order is not a draft
        """
        with transaction.atomic():
            order = _get_order(order_id, for_update=True)
            _require_status(order, OrderStatus.DRAFT)
            order.delete()

        logger.info("order.draft.discarded", extra={"order_id": order_id})

    # ══════════════════════════════════════════════════════════════
    # RECONCILIATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def apply(cls, draft: OrderDraft | Order) -> Order:
        """
        Complete an order and consume its quantities.

        Accepts an unsaved OrderDraft (sale in one step) or a persisted Order
        in DRAFT status. Per line:
        - agent: consume the agent's allocation of the product
        - seller / shop staff: decrement the shop's stock

        Returns:
            The order, COMPLETED

        Raises:
            StockError('INVALID_TRANSITION'): Order is not a draft
            StockError('INSUFFICIENT_STOCK' | 'INSUFFICIENT_ALLOCATION' |
                       'ALLOCATION_NOT_FOUND' | 'STOCK_RECORD_NOT_FOUND'):
                A line could not be applied. data carries failed_line,
                applied_lines and rolled_back=True.

        Concurrency:
            - Runs under transaction.atomic(): a failing line rolls back
              every earlier line, and the order stays a draft (or is not
              created at all for an OrderDraft)
        """
        with transaction.atomic():
            if isinstance(draft, OrderDraft):
                order = cls.create_draft(draft)
            else:
                order = _get_order(draft.order_id, for_update=True)
            _require_status(order, OrderStatus.DRAFT)

            lines = list(order.lines.all())
            if not lines:
                raise StockError('EMPTY_ORDER', order_id=order.order_id)

            agent_sale = Actor(order.seller_id, order.seller_role).sells_from_allocation
            applied = []

            for index, line in enumerate(lines):
                try:
                    if agent_sale:
                        allocation = AllocationMutator.adjust(
                            line.product_id, order.seller_id, line.quantity,
                            AllocationDirection.CONSUME,
                        )
                        line.via_allocation = True
                        line.allocation = allocation
                        line.save(update_fields=['via_allocation', 'allocation'])
                    else:
                        StockMutator.adjust(
                            line.shop_id, line.product_id, -line.quantity,
                            kind=MovementKind.SALE,
                            reference=order.order_ref,
                            reason=f"Sale #{order.order_id}",
                            actor_id=order.seller_id,
                        )
                except StockError as e:
                    logger.warning(
                        "order.apply.failed",
                        extra={
                            "order_id": order.order_id,
                            "failed_line": index,
                            "product_id": line.product_id,
                            "code": e.code,
                            "applied_lines": applied,
                        },
                    )
                    raise StockError(
                        e.code,
                        e.message,
                        **{
                            **e.data,
                            'order_id': order.order_id,
                            'failed_line': index,
                            'applied_lines': applied,
                            'rolled_back': True,
                        },
                    ) from e
                applied.append(index)

            now = timezone.now()
            order.status = OrderStatus.COMPLETED
            order.completed_at = now
            order.updated_at = now
            order.total_sum = to_money(sum((line.line_total for line in lines), Decimal('0')))
            order.save(update_fields=['status', 'completed_at', 'updated_at', 'total_sum'])

        logger.info(
            "order.apply",
            extra={
                "order_id": order.order_id,
                "seller_id": order.seller_id,
                "via_allocation": agent_sale,
                "lines": len(lines),
                "total": str(order.total_sum),
            },
        )
        return order

    @classmethod
    def reverse(cls, order_id: int, reason: str = '', cancelled_by: str = '') -> Order:
        """
        Cancel a completed order and put its quantities back.

        Each line goes back to the pool it was taken from at apply time:
        allocation lines restore the allocation (re-opening it if sold out),
        the others credit shop stock.

        Raises:
            StockError('ORDER_NOT_FOUND'): Unknown order
            StockError('INVALID_TRANSITION'): Not COMPLETED (draft, or already
                cancelled — a second cancel never reverses twice)
            StockError('ALLOCATION_NOT_FOUND'): Allocation line lost its allocation

        Concurrency:
            - Runs under transaction.atomic()
            - COMPLETED → CANCELLED is a conditional update, so only one of
              two racing cancellations proceeds
        """
        now = timezone.now()
        reason = reason or consignman_settings.DEFAULT_CANCELLATION_REASON

        with transaction.atomic():
            order = _get_order(order_id, for_update=True)
            _require_status(order, OrderStatus.COMPLETED)

            claimed = Order.objects.filter(
                pk=order.pk, status=OrderStatus.COMPLETED,
            ).update(
                status=OrderStatus.CANCELLED,
                cancelled_at=now,
                cancelled_by=cancelled_by,
                cancellation_reason=reason,
                updated_at=now,
            )
            if not claimed:
                order.refresh_from_db()
                _require_status(order, OrderStatus.COMPLETED)

            lines = list(order.lines.all())
            for line in lines:
                if line.via_allocation:
                    if line.allocation_id is None:
                        raise StockError(
                            'ALLOCATION_NOT_FOUND',
                            order_id=order.order_id,
                            product_id=line.product_id,
                            intermediary_id=order.seller_id,
                        )
                    AllocationMutator.adjust(
                        line.allocation.product_id, line.allocation.intermediary_id,
                        line.quantity, AllocationDirection.RESTORE,
                    )
                else:
                    StockMutator.adjust(
                        line.shop_id, line.product_id, line.quantity,
                        kind=MovementKind.CANCEL,
                        reference=order.order_ref,
                        reason=f"Cancelled #{order.order_id}: {reason}",
                        actor_id=cancelled_by,
                    )

            order.refresh_from_db()

        logger.info(
            "order.reverse",
            extra={
                "order_id": order.order_id,
                "reason": reason,
                "cancelled_by": cancelled_by,
                "lines": len(lines),
            },
        )
        return order

    @classmethod
    def get_order(cls, order_id: int) -> Order:
        """
        Raises:
            StockError('ORDER_NOT_FOUND'): Unknown order
        """
        return _get_order(order_id)
