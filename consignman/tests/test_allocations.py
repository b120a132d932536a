"""
Tests for allocations: assign, return, consume / restore.
"""

from decimal import Decimal

import pytest

from consignman import consignment, StockError
from consignman.models import Allocation, AllocationDirection, AllocationStatus, MovementKind
from consignman.services.allocations import AllocationMutator, AllocationRegistry


pytestmark = pytest.mark.django_db


class TestAssign:
    """Tests for consignment.assign()."""

    def test_assign_moves_stock_to_agent(self, stocked, shop, product, agent, owner):
        allocation = consignment.assign(shop, product, agent.actor_id, Decimal('40'), owner)

        assert allocation.assigned_quantity == Decimal('40')
        assert allocation.remaining_quantity == Decimal('40')
        assert allocation.status == AllocationStatus.ASSIGNED
        assert allocation.assigned_by == owner
        assert consignment.get_on_hand(shop, product) == Decimal('60')

    def test_assign_writes_allocate_movement(self, stocked, shop, product, agent, owner):
        allocation = consignment.assign(shop, product, agent.actor_id, Decimal('40'), owner)

        movement = stocked.movements.get(kind=MovementKind.ALLOCATE)
        assert movement.delta == Decimal('-40')
        assert movement.reference == allocation.allocation_ref
        assert movement.actor_id == owner

    def test_assign_twice_tops_up_single_allocation(self, stocked, shop, product, agent, owner):
        consignment.assign(shop, product, agent.actor_id, Decimal('5'), owner)
        allocation = consignment.assign(shop, product, agent.actor_id, Decimal('5'), owner)

        assert Allocation.objects.count() == 1
        assert allocation.assigned_quantity == Decimal('10')
        assert allocation.remaining_quantity == Decimal('10')
        assert consignment.get_on_hand(shop, product) == Decimal('90')

    def test_assign_more_than_on_hand(self, stocked, shop, product, agent, owner):
        with pytest.raises(StockError) as exc:
            consignment.assign(shop, product, agent.actor_id, Decimal('101'), owner)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('100')
        assert not Allocation.objects.exists()
        assert consignment.get_on_hand(shop, product) == Decimal('100')

    def test_assign_unstocked_product(self, db, shop, agent, owner):
        with pytest.raises(StockError) as exc:
            consignment.assign(shop, 'sku-ghost', agent.actor_id, Decimal('1'), owner)

        assert exc.value.code == 'INSUFFICIENT_STOCK'

    def test_assign_zero(self, stocked, shop, product, agent, owner):
        with pytest.raises(StockError) as exc:
            consignment.assign(shop, product, agent.actor_id, Decimal('0'), owner)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_assign_finer_than_storage(self, stocked, shop, product, agent, owner):
        with pytest.raises(StockError) as exc:
            consignment.assign(shop, product, agent.actor_id, Decimal('1.0005'), owner)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not Allocation.objects.exists()
        assert consignment.get_on_hand(shop, product) == Decimal('100')

    def test_assign_from_other_shop_is_a_mismatch(self, stocked, shop, product, agent, owner):
        """The agent already holds the product from another shop."""
        consignment.receive('shop-samarkand', product, Decimal('20'))
        existing = consignment.assign(shop, product, agent.actor_id, Decimal('5'), owner)

        with pytest.raises(StockError) as exc:
            consignment.assign('shop-samarkand', product, agent.actor_id, Decimal('5'), owner)

        assert exc.value.code == 'ALLOCATION_SHOP_MISMATCH'
        assert exc.value.data['allocation_id'] == existing.pk
        assert exc.value.data['allocation_shop_id'] == shop
        assert consignment.get_on_hand('shop-samarkand', product) == Decimal('20')
        existing.refresh_from_db()
        assert existing.remaining_quantity == Decimal('5')

    def test_assign_reopens_returned_allocation(self, stocked, shop, product, agent, owner):
        allocation = consignment.assign(shop, product, agent.actor_id, Decimal('4'), owner)
        consignment.return_to_shop(allocation.pk, Decimal('4'))

        allocation = consignment.assign(shop, product, agent.actor_id, Decimal('6'), owner)

        assert allocation.status == AllocationStatus.ASSIGNED
        assert allocation.remaining_quantity == Decimal('6')
        assert allocation.assigned_quantity == Decimal('10')


class TestReturnToShop:
    """Tests for consignment.return_to_shop()."""

    @pytest.fixture
    def allocation(self, stocked, shop, product, agent, owner):
        return consignment.assign(shop, product, agent.actor_id, Decimal('3'), owner)

    def test_partial_return(self, allocation, shop, product):
        allocation = consignment.return_to_shop(allocation.pk, Decimal('2'), actor_id='owner-bekzod')

        assert allocation.remaining_quantity == Decimal('1')
        assert allocation.assigned_quantity == Decimal('3')
        assert allocation.status == AllocationStatus.ASSIGNED
        assert consignment.get_on_hand(shop, product) == Decimal('99')

    def test_return_more_than_remaining(self, allocation, shop, product):
        consignment.return_to_shop(allocation.pk, Decimal('2'))

        with pytest.raises(StockError) as exc:
            consignment.return_to_shop(allocation.pk, Decimal('2'))

        assert exc.value.code == 'INSUFFICIENT_ALLOCATION'
        assert consignment.get_remaining(product, allocation.intermediary_id) == Decimal('1')
        assert consignment.get_on_hand(shop, product) == Decimal('99')

    def test_full_return_marks_returned(self, allocation):
        allocation = consignment.return_to_shop(allocation.pk, Decimal('3'))

        assert allocation.status == AllocationStatus.RETURNED
        assert allocation.returned_at is not None

    def test_return_finer_than_storage(self, allocation, shop, product):
        with pytest.raises(StockError) as exc:
            consignment.return_to_shop(allocation.pk, Decimal('1.0001'))

        assert exc.value.code == 'INVALID_QUANTITY'
        assert consignment.get_on_hand(shop, product) == Decimal('97')

    def test_return_unknown_allocation(self, db):
        with pytest.raises(StockError) as exc:
            consignment.return_to_shop(999, Decimal('1'))

        assert exc.value.code == 'ALLOCATION_NOT_FOUND'


class TestAllocationMutator:
    """Tests for AllocationMutator.adjust()."""

    @pytest.fixture
    def allocation(self, stocked, shop, product, agent, owner):
        return consignment.assign(shop, product, agent.actor_id, Decimal('10'), owner)

    def test_consume_to_zero_marks_sold(self, allocation, product, agent):
        result = AllocationMutator.adjust(product, agent.actor_id, Decimal('10'),
                                          AllocationDirection.CONSUME)

        assert result.remaining_quantity == Decimal('0')
        assert result.status == AllocationStatus.SOLD
        assert result.sold_at is not None

    def test_consume_beyond_remaining(self, allocation, product, agent):
        with pytest.raises(StockError) as exc:
            AllocationMutator.adjust(product, agent.actor_id, Decimal('11'),
                                     AllocationDirection.CONSUME)

        assert exc.value.code == 'INSUFFICIENT_ALLOCATION'
        allocation.refresh_from_db()
        assert allocation.remaining_quantity == Decimal('10')

    def test_restore_reopens_sold(self, allocation, product, agent):
        AllocationMutator.adjust(product, agent.actor_id, Decimal('10'), AllocationDirection.CONSUME)
        result = AllocationMutator.adjust(product, agent.actor_id, Decimal('4'),
                                          AllocationDirection.RESTORE)

        assert result.remaining_quantity == Decimal('4')
        assert result.status == AllocationStatus.ASSIGNED

    def test_restore_beyond_assigned(self, allocation, product, agent):
        with pytest.raises(StockError) as exc:
            AllocationMutator.adjust(product, agent.actor_id, Decimal('1'),
                                     AllocationDirection.RESTORE)

        assert exc.value.code == 'ALLOCATION_OVERFLOW'

    def test_signed_quantity_uses_magnitude(self, allocation, product, agent):
        result = AllocationMutator.adjust(product, agent.actor_id, Decimal('-3'),
                                          AllocationDirection.CONSUME)

        assert result.remaining_quantity == Decimal('7')

    def test_missing_allocation(self, stocked, product):
        with pytest.raises(StockError) as exc:
            AllocationMutator.adjust(product, 'agent-nobody', Decimal('1'),
                                     AllocationDirection.CONSUME)

        assert exc.value.code == 'ALLOCATION_NOT_FOUND'

    def test_unknown_direction(self, allocation, product, agent):
        with pytest.raises(StockError) as exc:
            AllocationMutator.adjust(product, agent.actor_id, Decimal('1'), 'sideways')

        assert exc.value.code == 'INVALID_DIRECTION'
        assert exc.value.data['direction'] == 'sideways'
        allocation.refresh_from_db()
        assert allocation.remaining_quantity == Decimal('10')

    def test_consume_finer_than_storage(self, allocation, product, agent):
        with pytest.raises(StockError) as exc:
            AllocationMutator.adjust(product, agent.actor_id, Decimal('0.0004'),
                                     AllocationDirection.CONSUME)

        assert exc.value.code == 'INVALID_QUANTITY'
        allocation.refresh_from_db()
        assert allocation.remaining_quantity == Decimal('10')


class TestQueries:
    """Tests for allocation queries."""

    def test_get_remaining_without_allocation(self, db, product):
        assert consignment.get_remaining(product, 'agent-nobody') == Decimal('0')

    def test_list_allocations_filters(self, stocked, shop, product, owner):
        consignment.assign(shop, product, 'agent-a', Decimal('5'), owner)
        second = consignment.assign(shop, product, 'agent-b', Decimal('5'), owner)
        consignment.return_to_shop(second.pk, Decimal('5'))

        assert consignment.list_allocations(intermediary_id='agent-a').count() == 1
        assert consignment.list_allocations(shop_id=shop).count() == 2
        assert consignment.list_allocations(status=AllocationStatus.RETURNED).get() == second
        assert [a.intermediary_id for a in consignment.list_allocations(holding_only=True)] == ['agent-a']

    def test_total_allocated(self, stocked, shop, product, owner):
        consignment.assign(shop, product, 'agent-a', Decimal('5'), owner)
        consignment.assign(shop, product, 'agent-b', Decimal('7'), owner)

        assert AllocationRegistry.total_allocated(shop, product) == Decimal('12')
