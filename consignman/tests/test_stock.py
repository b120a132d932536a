"""
Tests for shop stock mutations.
"""

from decimal import Decimal

import pytest

from consignman import consignment, StockError
from consignman.models import MovementKind, StockMovement, StockRecord
from consignman.services.stock import StockMutator


pytestmark = pytest.mark.django_db


class TestReceive:
    """Tests for consignment.receive()."""

    def test_receive_creates_record_and_movement(self, shop, product):
        record = consignment.receive(shop, product, Decimal('50'))

        assert record.on_hand == Decimal('50')
        assert record.unit == 'pcs'
        assert record.movements.count() == 1
        assert record.movements.first().kind == MovementKind.RECEIVE

    def test_receive_updates_existing_record(self, shop, product):
        consignment.receive(shop, product, Decimal('50'))
        record = consignment.receive(shop, product, Decimal('30'))

        assert record.on_hand == Decimal('80')
        assert StockRecord.objects.count() == 1
        assert record.movements.count() == 2

    def test_receive_fractional_quantity(self, shop):
        record = consignment.receive(shop, 'sku-rice', Decimal('2.5'), unit='kg')

        assert record.on_hand == Decimal('2.5')
        assert record.unit == 'kg'

    def test_receive_stores_catalog_name(self, stocked):
        assert stocked.metadata['name'] == 'Teapot'

    @pytest.mark.parametrize('quantity', [Decimal('0'), Decimal('-3')])
    def test_receive_invalid_quantity(self, shop, product, quantity):
        with pytest.raises(StockError) as exc:
            consignment.receive(shop, product, quantity)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not StockRecord.objects.exists()

    def test_receive_rejects_sub_precision_quantity(self, shop, product):
        """0.0004 would be stored as 0.000."""
        with pytest.raises(StockError) as exc:
            consignment.receive(shop, product, Decimal('0.0004'))

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not StockRecord.objects.exists()


class TestAdjust:
    """Tests for StockMutator.adjust()."""

    def test_adjust_decrements(self, stocked, shop, product):
        record = StockMutator.adjust(shop, product, Decimal('-30'), kind=MovementKind.SALE,
                                     reference='order:1001')

        assert record.on_hand == Decimal('70')
        assert record.version == stocked.version + 1
        assert record.movements.last().reference == 'order:1001'

    def test_adjust_to_exactly_zero(self, stocked, shop, product):
        record = StockMutator.adjust(shop, product, Decimal('-100'), kind=MovementKind.SALE)

        assert record.on_hand == Decimal('0')

    def test_adjust_below_zero_raises_and_leaves_stock(self, stocked, shop, product):
        with pytest.raises(StockError) as exc:
            StockMutator.adjust(shop, product, Decimal('-101'), kind=MovementKind.SALE)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('100')
        assert exc.value.requested == Decimal('101')
        assert consignment.get_on_hand(shop, product) == Decimal('100')
        assert StockMovement.objects.count() == 1

    def test_adjust_unknown_sku(self, db, shop):
        with pytest.raises(StockError) as exc:
            StockMutator.adjust(shop, 'sku-ghost', Decimal('-1'), kind=MovementKind.SALE)

        assert exc.value.code == 'STOCK_RECORD_NOT_FOUND'

    def test_adjust_zero_delta(self, stocked, shop, product):
        with pytest.raises(StockError) as exc:
            StockMutator.adjust(shop, product, Decimal('0'), kind=MovementKind.SALE)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_adjust_rejects_delta_finer_than_storage(self, stocked, shop, product):
        """A delta of -2.0006 is refused instead of being rounded to -2.001."""
        with pytest.raises(StockError) as exc:
            StockMutator.adjust(shop, product, Decimal('-2.0006'), kind=MovementKind.SALE)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert consignment.get_on_hand(shop, product) == Decimal('100')
        assert StockMovement.objects.count() == 1

    def test_adjust_accepts_three_decimals(self, stocked, shop, product):
        record = StockMutator.adjust(shop, product, Decimal('-2.125'), kind=MovementKind.SALE)

        record.refresh_from_db()
        assert record.on_hand == Decimal('97.875')


class TestRecount:
    """Tests for consignment.recount()."""

    def test_recount_records_difference(self, stocked, shop, product):
        record = consignment.recount(shop, product, Decimal('95'), reason='Broken lid')

        assert record.on_hand == Decimal('95')
        movement = record.movements.last()
        assert movement.delta == Decimal('-5')
        assert movement.kind == MovementKind.RECOUNT
        assert 'Broken lid' in movement.reason

    def test_recount_same_quantity_is_noop(self, stocked, shop, product):
        assert consignment.recount(shop, product, Decimal('100'), reason='Count') is None
        assert StockMovement.objects.count() == 1

    def test_recount_requires_reason(self, stocked, shop, product):
        with pytest.raises(StockError) as exc:
            consignment.recount(shop, product, Decimal('90'), reason='')

        assert exc.value.code == 'REASON_REQUIRED'

    def test_recount_negative(self, stocked, shop, product):
        with pytest.raises(StockError) as exc:
            consignment.recount(shop, product, Decimal('-1'), reason='Count')

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_recount_sub_precision(self, stocked, shop, product):
        with pytest.raises(StockError) as exc:
            consignment.recount(shop, product, Decimal('99.9999'), reason='Scale')

        assert exc.value.code == 'INVALID_QUANTITY'
        assert consignment.get_on_hand(shop, product) == Decimal('100')


class TestStockRecord:
    """Tests for the StockRecord cache and the movement ledger."""

    def test_get_on_hand_unknown_sku(self, db, shop):
        assert consignment.get_on_hand(shop, 'sku-ghost') == Decimal('0')

    def test_ledger_balance_matches_on_hand(self, stocked, shop, product):
        StockMutator.adjust(shop, product, Decimal('-12'), kind=MovementKind.SALE)
        stocked.refresh_from_db()

        assert stocked.ledger_balance() == stocked.on_hand == Decimal('88')

    def test_recalculate_repairs_drift(self, stocked):
        StockRecord.objects.filter(pk=stocked.pk).update(on_hand=Decimal('7'))
        stocked.refresh_from_db()

        assert stocked.recalculate() == Decimal('100')
        assert stocked.on_hand == Decimal('100')

    def test_movement_is_immutable(self, stocked):
        movement = stocked.movements.first()

        with pytest.raises(ValueError):
            movement.save()
        with pytest.raises(ValueError):
            movement.delete()
