"""
Consignment Service — The single public interface for stock allocation.

Usage:
    from consignman import consignment, StockError

    consignment.receive('shop-1', 'sku-9', Decimal('100'))
    alloc = consignment.assign('shop-1', 'sku-9', 'agent-3', Decimal('40'), 'owner-1')
    consignment.return_to_shop(alloc.pk, Decimal('5'))
    consignment.get_on_hand('shop-1', 'sku-9')  # 65
"""

from decimal import Decimal

from consignman.models.allocation import Allocation
from consignman.models.order import Order
from consignman.models.stock import StockRecord
from consignman.protocols.orders import LineInput, OrderDraft
from consignman.services.allocations import AllocationRegistry
from consignman.services.audit import ConsistencyInvariantChecker, ConsistencyReport
from consignman.services.orders import OrderReconciler
from consignman.services.stock import StockMutator


class Consignment:
    """
    Single interface for all allocation operations.

    Every state-changing method runs in an atomic transaction with
    versioned conditional updates. See the delegated services for details.
    """

    # ══════════════════════════════════════════════════════════════
    # SHOP STOCK
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def receive(cls, shop_id: str, product_id: str, quantity: Decimal,
                **kwargs) -> StockRecord:
        return StockMutator.receive(shop_id, product_id, quantity, **kwargs)

    @classmethod
    def recount(cls, shop_id: str, product_id: str, new_quantity: Decimal,
                reason: str, actor_id: str = '') -> StockRecord | None:
        return StockMutator.recount(shop_id, product_id, new_quantity, reason, actor_id)

    @classmethod
    def get_on_hand(cls, shop_id: str, product_id: str) -> Decimal:
        return StockMutator.get_on_hand(shop_id, product_id)

    # ══════════════════════════════════════════════════════════════
    # ALLOCATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def assign(cls, shop_id: str, product_id: str, intermediary_id: str,
               quantity: Decimal, assigned_by: str) -> Allocation:
        """Shop stock → intermediary. See AllocationRegistry.assign."""
        return AllocationRegistry.assign(
            shop_id, product_id, intermediary_id, quantity, assigned_by,
        )

    @classmethod
    def return_to_shop(cls, allocation_id: int, quantity: Decimal,
                       actor_id: str = '') -> Allocation:
        """Intermediary → shop stock. See AllocationRegistry.return_to_shop."""
        return AllocationRegistry.return_to_shop(allocation_id, quantity, actor_id)

    @classmethod
    def get_remaining(cls, product_id: str, intermediary_id: str) -> Decimal:
        return AllocationRegistry.get_remaining(product_id, intermediary_id)

    @classmethod
    def list_allocations(cls, intermediary_id: str | None = None,
                         shop_id: str | None = None, status: str | None = None,
                         holding_only: bool = False):
        return AllocationRegistry.list_allocations(
            intermediary_id=intermediary_id,
            shop_id=shop_id,
            status=status,
            holding_only=holding_only,
        )

    # ══════════════════════════════════════════════════════════════
    # ORDERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_draft(cls, draft: OrderDraft) -> Order:
        return OrderReconciler.create_draft(draft)

    @classmethod
    def update_draft(cls, order_id: int, lines: list[LineInput] | None = None,
                     payment_method: str | None = None,
                     store_owner_id: str | None = None) -> Order:
        return OrderReconciler.update_draft(
            order_id,
            lines=lines,
            payment_method=payment_method,
            store_owner_id=store_owner_id,
        )

    @classmethod
    def discard_draft(cls, order_id: int) -> None:
        OrderReconciler.discard_draft(order_id)

    @classmethod
    def apply(cls, draft: OrderDraft | Order) -> Order:
        """Complete a sale. See OrderReconciler.apply."""
        return OrderReconciler.apply(draft)

    @classmethod
    def reverse(cls, order_id: int, reason: str = '', cancelled_by: str = '') -> Order:
        """Cancel a completed sale. See OrderReconciler.reverse."""
        return OrderReconciler.reverse(order_id, reason=reason, cancelled_by=cancelled_by)

    @classmethod
    def get_order(cls, order_id: int) -> Order:
        return OrderReconciler.get_order(order_id)

    # ══════════════════════════════════════════════════════════════
    # AUDIT
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def verify(cls, shop_id: str, product_id: str) -> ConsistencyReport:
        return ConsistencyInvariantChecker.verify(shop_id, product_id)
