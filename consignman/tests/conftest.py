"""
Pytest fixtures for Consignman tests.
"""

from decimal import Decimal

import pytest

from consignman import consignment
from consignman.adapters import reset_catalog
from consignman.protocols import Actor, LineInput, OrderDraft


@pytest.fixture(autouse=True)
def _fresh_catalog():
    """Each test loads the catalog backend from its own settings."""
    reset_catalog()
    yield
    reset_catalog()


@pytest.fixture
def shop():
    return 'shop-tashkent'


@pytest.fixture
def product():
    return 'sku-teapot'


@pytest.fixture
def agent():
    """Sells from its own allocation."""
    return Actor.agent('agent-anvar')


@pytest.fixture
def seller():
    """Sells directly from shop stock."""
    return Actor.seller('seller-dilnoza')


@pytest.fixture
def owner():
    return 'owner-bekzod'


@pytest.fixture
def stocked(db, shop, product):
    """SKU with 100 units on hand."""
    return consignment.receive(shop, product, Decimal('100'), name='Teapot')


@pytest.fixture
def sale():
    """Build a one-line OrderDraft."""
    def _sale(actor, product_id, quantity, price=Decimal('25.00'), **kwargs):
        return OrderDraft(
            seller=actor,
            lines=[LineInput(product_id, Decimal(quantity), Decimal(price))],
            **kwargs,
        )
    return _sale
