"""
Django Consignman — stock allocation for shops, agents and sellers.

Usage:
    from consignman import consignment, StockError
    from consignman.protocols import Actor, LineInput, OrderDraft

    consignment.receive('shop-1', 'sku-9', 100)
    consignment.assign('shop-1', 'sku-9', 'agent-3', 40, assigned_by='owner-1')
    consignment.apply(OrderDraft(Actor.agent('agent-3'), [LineInput('sku-9', 10, 25)]))
    consignment.get_remaining('sku-9', 'agent-3')  # 30
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'consignment':
        from consignman.service import Consignment
        return Consignment
    elif name == 'StockError':
        from consignman.exceptions import StockError
        return StockError
    elif name == 'Actor':
        from consignman.protocols.actor import Actor
        return Actor
    elif name == 'StockRecord':
        from consignman.models.stock import StockRecord
        return StockRecord
    elif name == 'StockMovement':
        from consignman.models.movement import StockMovement
        return StockMovement
    elif name == 'Allocation':
        from consignman.models.allocation import Allocation
        return Allocation
    elif name == 'Order':
        from consignman.models.order import Order
        return Order
    elif name == 'AllocationStatus':
        from consignman.models.enums import AllocationStatus
        return AllocationStatus
    elif name == 'OrderStatus':
        from consignman.models.enums import OrderStatus
        return OrderStatus
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'consignment',
    'StockError',
    'Actor',
    'StockRecord',
    'StockMovement',
    'Allocation',
    'Order',
    'AllocationStatus',
    'OrderStatus',
]

__version__ = '0.1.0'
