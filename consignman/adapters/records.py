"""
StockRecord catalog — default CatalogLookup backed by Consignman's own table.

Resolves a product to the shop whose stock record carries it. Good enough
when every product id is stocked by exactly one shop, which is how the
marketplace assigns products. Hosts with a richer catalog plug their own
backend via CONSIGNMAN['CATALOG_BACKEND'].
"""

from __future__ import annotations

from consignman.models.stock import StockRecord
from consignman.protocols.catalog import ProductInfo


class StockRecordCatalog:
    """CatalogLookup reading unit data from StockRecord."""

    def get_product(self, product_id: str) -> ProductInfo | None:
        record = (
            StockRecord.objects.filter(product_id=product_id)
            .order_by('created_at')
            .first()
        )
        if record is None:
            return None
        return ProductInfo(
            product_id=record.product_id,
            shop_id=record.shop_id,
            unit=record.unit,
            unit_size=record.unit_size,
            name=record.metadata.get('name', ''),
        )
