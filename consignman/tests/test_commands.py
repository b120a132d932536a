"""
Tests for the audit_stock management command.
"""

from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from consignman import consignment
from consignman.models import StockRecord


pytestmark = pytest.mark.django_db


def _run(*args):
    out = StringIO()
    call_command('audit_stock', *args, stdout=out)
    return out.getvalue()


def test_clean_audit(stocked, shop, product, agent, owner):
    consignment.assign(shop, product, agent.actor_id, Decimal('10'), owner)

    output = _run()

    assert '1 SKU(s) audited, 0 inconsistent' in output


def test_reports_drift(stocked):
    StockRecord.objects.filter(pk=stocked.pk).update(on_hand=Decimal('80'))

    output = _run()

    assert 'ledger: on_hand 80' in output
    assert '1 inconsistent' in output


def test_strict_fails_on_drift(stocked):
    StockRecord.objects.filter(pk=stocked.pk).update(on_hand=Decimal('80'))

    with pytest.raises(CommandError):
        _run('--strict')


def test_repair_rebuilds_cache(stocked, shop, product):
    StockRecord.objects.filter(pk=stocked.pk).update(on_hand=Decimal('80'))

    output = _run('--repair', '--strict', '--shop', shop, '--product', product)

    assert '1 record(s) repaired' in output
    assert consignment.get_on_hand(shop, product) == Decimal('100')
