"""
Catalog Lookup Protocol — Interface for resolving products to their shop.

Consignman defines this protocol, the host catalog implements it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ProductInfo:
    """What stock reconciliation needs to know about a product."""

    product_id: str
    shop_id: str
    unit: str  # "pcs", "kg", "lt", etc.
    unit_size: Decimal = Decimal("1")
    name: str = ""


@runtime_checkable
class CatalogLookup(Protocol):
    """
    Protocol for catalog lookups.

    Implementations resolve a product id to the shop that stocks it and its
    unit of measure. Validation (active, visible, priced) is the catalog's
    concern and is assumed done before Consignman is called.
    """

    def get_product(self, product_id: str) -> ProductInfo | None:
        """
        Get product information.

        Args:
            product_id: Product identifier

        Returns:
            ProductInfo or None if the product is unknown
        """
        ...
