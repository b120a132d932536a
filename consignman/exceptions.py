"""
Exceptions for Consignman.

All errors are StockError with a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Base for structured errors: a code, a human message and context data.

    Subclasses declare ``_default_messages`` keyed by code.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.code!r}, data={self.data!r})"


class StockError(BaseError):
    """
    Structured exception for stock, allocation and order operations.

    Usage:
        try:
            consignment.assign('shop-1', 'sku-9', 'agent-3', Decimal('40'), 'owner-1')
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} on hand")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Offending identifiers and quantities
    """

    _default_messages = {
        'INSUFFICIENT_STOCK': 'Not enough stock on hand',
        'INSUFFICIENT_ALLOCATION': 'Not enough quantity left in the allocation',
        'ALLOCATION_NOT_FOUND': 'Allocation not found',
        'ALLOCATION_OVERFLOW': 'Remaining quantity would exceed assigned quantity',
        'ALLOCATION_SHOP_MISMATCH': 'Intermediary already holds this product from another shop',
        'INVALID_DIRECTION': 'Allocation direction must be consume or restore',
        'INVALID_PAYMENT_METHOD': 'Unknown payment method',
        'INVALID_TRANSITION': 'Invalid status for this operation',
        'CONCURRENT_MODIFICATION': 'Concurrent modification detected, retry the operation',
        'INVALID_QUANTITY': 'Invalid quantity (must be positive, at most 3 decimal places)',
        'INVALID_PRICE': 'Invalid price (must not be negative, at most 2 decimal places)',
        'REASON_REQUIRED': 'Reason is required',
        'STOCK_RECORD_NOT_FOUND': 'Stock record not found',
        'ORDER_NOT_FOUND': 'Order not found',
        'PRODUCT_NOT_FOUND': 'Product not found in catalog',
        'EMPTY_ORDER': 'Order must have at least one line',
        'INVALID_ROLE': 'Unknown actor role',
        'INVARIANT_VIOLATION': 'Stock pools are inconsistent',
    }

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    @property
    def is_transient(self) -> bool:
        """Caller may retry the same operation."""
        return self.code == 'CONCURRENT_MODIFICATION'

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: _serialize(v)
                for k, v in self.data.items()
            }
        }


def _serialize(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value
