"""
Consignman Adapters.

Implementations of protocols for external systems.
"""

from consignman.adapters.catalog import get_catalog, reset_catalog
from consignman.adapters.records import StockRecordCatalog

__all__ = [
    "StockRecordCatalog",
    "get_catalog",
    "reset_catalog",
]
