"""
Catalog loader — returns the configured CatalogLookup backend.

Usage:
    from consignman.adapters import get_catalog

    info = get_catalog().get_product("sku-001")

Settings:
    CONSIGNMAN = {
        "CATALOG_BACKEND": "shop.adapters.ShopCatalog",
    }

Defaults to consignman.adapters.records.StockRecordCatalog.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from consignman.conf import consignman_settings
from consignman.protocols.catalog import CatalogLookup

logger = logging.getLogger(__name__)


# Cached backend instance
_lock = threading.Lock()
_catalog: CatalogLookup | None = None


def get_catalog() -> CatalogLookup:
    """
    Return the configured catalog backend.

    Raises:
        ImproperlyConfigured: If CATALOG_BACKEND is empty, cannot be imported
            or does not implement CatalogLookup
    """
    global _catalog

    if _catalog is None:
        with _lock:
            if _catalog is None:  # double-checked
                backend_path = consignman_settings.CATALOG_BACKEND

                if not backend_path:
                    raise ImproperlyConfigured(
                        "CONSIGNMAN['CATALOG_BACKEND'] must be configured. "
                        "Example: 'consignman.adapters.records.StockRecordCatalog'"
                    )

                try:
                    backend = import_string(backend_path)()
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import catalog backend '{backend_path}': {e}"
                    ) from e

                if not isinstance(backend, CatalogLookup):
                    raise ImproperlyConfigured(
                        f"'{backend_path}' does not implement CatalogLookup"
                    )

                _catalog = backend
                logger.debug("Loaded catalog backend: %s", backend_path)

    return _catalog


def reset_catalog() -> None:
    """Reset the cached backend. Useful for testing."""
    global _catalog
    _catalog = None
