"""
Consignman configuration.

Usage in settings.py:
    CONSIGNMAN = {
        "CATALOG_BACKEND": "consignman.adapters.records.StockRecordCatalog",
        "MAX_UPDATE_RETRIES": 3,
        "ORDER_NUMBER_START": 1001,
        "DEFAULT_UNIT": "pcs",
    }
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.conf import settings


@dataclass
class ConsignmanSettings:
    """Consignman configuration settings."""

    # Catalog lookup backend (dotted path)
    CATALOG_BACKEND: str = "consignman.adapters.records.StockRecordCatalog"

    # Conditional update attempts before CONCURRENT_MODIFICATION
    MAX_UPDATE_RETRIES: int = 3

    # First human order number handed out by the order sequence
    ORDER_NUMBER_START: int = 1001

    # Line defaults when neither the caller nor the catalog provide them
    DEFAULT_UNIT: str = "pcs"
    DEFAULT_UNIT_SIZE: Decimal = Decimal("1")

    DEFAULT_CANCELLATION_REASON: str = "No cancellation reason given"


def get_consignman_settings() -> ConsignmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "CONSIGNMAN", {})
    return ConsignmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in ConsignmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_consignman_settings(), name)


consignman_settings = _LazySettings()
