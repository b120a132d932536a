"""
Consistency audit — checks that the quantity pools of a SKU add up.

Conservation, for every (shop_id, product_id):

    total_stocked == on_hand + allocated + sold

    total_stocked   Σ movement delta of kinds receive / recount
    on_hand         StockRecord.on_hand
    allocated       Σ Allocation.remaining_quantity
    sold            Σ quantity of lines on COMPLETED orders

Usage:
    from consignman.services.audit import ConsistencyInvariantChecker

    report = ConsistencyInvariantChecker.verify('shop-1', 'sku-9')
    if not report.is_consistent:
        for violation in report.violations:
            print(violation)
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from consignman.exceptions import StockError
from consignman.models.allocation import Allocation
from consignman.models.enums import STOCKING_KINDS, AllocationStatus, OrderStatus
from consignman.models.order import OrderLine
from consignman.models.stock import StockRecord

logger = logging.getLogger('consignman')

ZERO = Decimal('0')


@dataclass(frozen=True)
class Violation:
    check: str
    detail: str

    def __str__(self) -> str:
        return f"{self.check}: {self.detail}"


@dataclass
class ConsistencyReport:
    """Pool totals of one SKU and the checks that failed."""

    shop_id: str
    product_id: str
    on_hand: Decimal = ZERO
    allocated: Decimal = ZERO
    sold: Decimal = ZERO
    total_stocked: Decimal = ZERO
    ledger_balance: Decimal = ZERO
    violations: list[Violation] = field(default_factory=list)

    @property
    def sku(self) -> str:
        return f"{self.shop_id}/{self.product_id}"

    @property
    def is_consistent(self) -> bool:
        return not self.violations

    @property
    def accounted(self) -> Decimal:
        return self.on_hand + self.allocated + self.sold

    def add(self, check: str, detail: str) -> None:
        self.violations.append(Violation(check, detail))

    def as_dict(self) -> dict:
        return {
            'shop_id': self.shop_id,
            'product_id': self.product_id,
            'on_hand': str(self.on_hand),
            'allocated': str(self.allocated),
            'sold': str(self.sold),
            'total_stocked': str(self.total_stocked),
            'ledger_balance': str(self.ledger_balance),
            'violations': [str(v) for v in self.violations],
        }


def _sum(qs, field_name: str) -> Decimal:
    return qs.aggregate(t=Coalesce(Sum(field_name), ZERO))['t']


def _sold(shop_id: str, product_id: str) -> Decimal:
    """
    Quantity on completed orders, counted against the pool it left.

    Allocation lines belong to the allocation's SKU, the others to the
    line's own shop.
    """
    lines = OrderLine.objects.filter(order__status=OrderStatus.COMPLETED).filter(
        Q(via_allocation=False, shop_id=shop_id, product_id=product_id)
        | Q(via_allocation=True, allocation__shop_id=shop_id,
            allocation__product_id=product_id)
    )
    return _sum(lines, 'quantity')


class ConsistencyInvariantChecker:
    """Read-only audit of stock, allocation and order pools."""

    @classmethod
    def verify(cls, shop_id: str, product_id: str) -> ConsistencyReport:
        """
        Audit one SKU.

        Checks:
            conservation     total_stocked == on_hand + allocated + sold
            non_negative     on_hand >= 0, remaining >= 0
            ledger           on_hand == Σ movement delta
            allocation       remaining <= assigned
            status           ASSIGNED holds > 0, SOLD / RETURNED hold 0
        """
        report = ConsistencyReport(shop_id=shop_id, product_id=product_id)

        record = StockRecord.objects.for_sku(shop_id, product_id).first()
        allocations = list(Allocation.objects.for_sku(shop_id, product_id))

        if record is not None:
            report.on_hand = record.on_hand
            report.ledger_balance = record.ledger_balance()
            report.total_stocked = _sum(
                record.movements.filter(kind__in=STOCKING_KINDS), 'delta',
            )
        report.allocated = sum((a.remaining_quantity for a in allocations), ZERO)
        report.sold = _sold(shop_id, product_id)

        if report.total_stocked != report.accounted:
            report.add(
                'conservation',
                f"stocked {report.total_stocked} != on_hand {report.on_hand}"
                f" + allocated {report.allocated} + sold {report.sold}",
            )

        if report.on_hand < 0:
            report.add('non_negative', f"on_hand is {report.on_hand}")

        if record is not None and report.ledger_balance != report.on_hand:
            report.add(
                'ledger',
                f"on_hand {report.on_hand} != ledger {report.ledger_balance}",
            )

        for allocation in allocations:
            cls._check_allocation(report, allocation)

        if not report.is_consistent:
            logger.warning(
                "audit.violation",
                extra={
                    "sku": report.sku,
                    "violations": [str(v) for v in report.violations],
                },
            )
        return report

    @staticmethod
    def _check_allocation(report: ConsistencyReport, allocation: Allocation) -> None:
        ref = f"{allocation.allocation_ref} ({allocation.intermediary_id})"
        remaining = allocation.remaining_quantity

        if remaining < 0:
            report.add('non_negative', f"{ref} remaining is {remaining}")
        if remaining > allocation.assigned_quantity:
            report.add(
                'allocation',
                f"{ref} remaining {remaining} > assigned {allocation.assigned_quantity}",
            )

        if allocation.status == AllocationStatus.ASSIGNED and remaining == 0:
            report.add('status', f"{ref} is assigned but holds nothing")
        elif allocation.status != AllocationStatus.ASSIGNED and remaining != 0:
            report.add('status', f"{ref} is {allocation.status} but holds {remaining}")

    @classmethod
    def verify_all(cls, shop_id: str | None = None,
                   product_id: str | None = None) -> list[ConsistencyReport]:
        """Audit every stocked SKU (optionally narrowed to a shop / product)."""
        records = StockRecord.objects.all()
        if shop_id is not None:
            records = records.filter(shop_id=shop_id)
        if product_id is not None:
            records = records.filter(product_id=product_id)

        return [
            cls.verify(shop, product)
            for shop, product in records.order_by('shop_id', 'product_id')
            .values_list('shop_id', 'product_id')
        ]

    @classmethod
    def assert_consistent(cls, shop_id: str, product_id: str) -> ConsistencyReport:
        """
        Raises:
            StockError('INVARIANT_VIOLATION'): When any check fails
        """
        report = cls.verify(shop_id, product_id)
        if not report.is_consistent:
            raise StockError(
                'INVARIANT_VIOLATION',
                shop_id=shop_id,
                product_id=product_id,
                violations=[str(v) for v in report.violations],
            )
        return report
