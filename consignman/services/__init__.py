"""
Consignman services — modular organization of quantity operations.

Re-exports the service classes:
    from consignman.services import StockMutator, AllocationRegistry, OrderReconciler
"""

from consignman.services.allocations import AllocationMutator, AllocationRegistry
from consignman.services.audit import ConsistencyInvariantChecker, ConsistencyReport
from consignman.services.orders import OrderReconciler
from consignman.services.stock import StockMutator

__all__ = [
    'StockMutator',
    'AllocationMutator',
    'AllocationRegistry',
    'OrderReconciler',
    'ConsistencyInvariantChecker',
    'ConsistencyReport',
]
