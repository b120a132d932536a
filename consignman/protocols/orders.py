"""
Order input types — what a caller hands to the reconciler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from consignman.models.enums import PaymentMethod
from consignman.protocols.actor import Actor


@dataclass(frozen=True)
class LineInput:
    """One requested line item. unit/unit_size default from the catalog."""

    product_id: str
    quantity: Decimal
    price: Decimal
    name: str = ""
    unit: str | None = None
    unit_size: Decimal | None = None


@dataclass(frozen=True)
class OrderDraft:
    """Unsaved order, as submitted by a point-of-sale or agent app."""

    seller: Actor
    lines: list[LineInput]
    payment_method: str = PaymentMethod.CASH
    store_owner_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
