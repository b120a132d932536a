"""
Consignman Protocols.

Defines interfaces for external system integration.
"""

from consignman.protocols.actor import Actor
from consignman.protocols.catalog import CatalogLookup, ProductInfo
from consignman.protocols.orders import LineInput, OrderDraft

__all__ = [
    "Actor",
    "CatalogLookup",
    "LineInput",
    "OrderDraft",
    "ProductInfo",
]
