"""
Quantity and money normalization.

Quantities are stored with 3 decimal places and prices with 2. Inputs with
more precision are rejected rather than silently rounded by the database.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from consignman.exceptions import StockError

QUANTITY_STEP = Decimal('0.001')
MONEY_STEP = Decimal('0.01')


def _to_decimal(value) -> Decimal | None:
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None


def _fits(value: Decimal, step: Decimal) -> bool:
    return value.is_finite() and value == value.quantize(step)


def to_quantity(value, **ids) -> Decimal:
    """
    Decimal quantity representable in storage (any sign).

    Raises:
        StockError('INVALID_QUANTITY'): Not a number, or finer than 0.001
    """
    quantity = _to_decimal(value)
    if quantity is None or not _fits(quantity, QUANTITY_STEP):
        raise StockError('INVALID_QUANTITY', requested=value, **ids)
    return quantity


def require_positive(value, **ids) -> Decimal:
    """
    Raises:
        StockError('INVALID_QUANTITY'): Not > 0, or finer than 0.001
    """
    quantity = to_quantity(value, **ids)
    if quantity <= 0:
        raise StockError('INVALID_QUANTITY', requested=quantity, **ids)
    return quantity


def to_price(value, **ids) -> Decimal:
    """
    Raises:
        StockError('INVALID_PRICE'): Negative, not a number, or finer than 0.01
    """
    price = _to_decimal(value)
    if price is None or not _fits(price, MONEY_STEP) or price < 0:
        raise StockError('INVALID_PRICE', price=value, **ids)
    return price


def to_money(value: Decimal) -> Decimal:
    """Round a computed amount (e.g. an order total) to storage precision."""
    return value.quantize(MONEY_STEP, rounding=ROUND_HALF_UP)
