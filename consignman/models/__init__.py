"""
Consignman Models.

Core models for stock allocation:
- StockRecord: On-hand quantity of a SKU in a shop
- StockMovement: Immutable ledger of on-hand changes
- Allocation: Stock held by an intermediary
- Order / OrderLine: Sales reconciled against the right pool
- OrderSequence: Atomic order number counter
"""

from consignman.models.allocation import Allocation
from consignman.models.enums import (
    ActorRole,
    AllocationDirection,
    AllocationStatus,
    MovementKind,
    OrderStatus,
    PaymentMethod,
)
from consignman.models.movement import StockMovement
from consignman.models.order import Order, OrderLine
from consignman.models.sequence import OrderSequence
from consignman.models.stock import StockRecord

__all__ = [
    'ActorRole',
    'AllocationDirection',
    'AllocationStatus',
    'MovementKind',
    'OrderStatus',
    'PaymentMethod',
    'StockRecord',
    'StockMovement',
    'Allocation',
    'Order',
    'OrderLine',
    'OrderSequence',
]
