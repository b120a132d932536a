"""
Tests for versioned conditional updates.

A concurrent writer is simulated by bumping the row's version from inside
``mutate``, between the read and the conditional update.
"""

from decimal import Decimal

import pytest
from django.db.models import F

from consignman import StockError
from consignman.models import StockRecord
from consignman.services.versioning import update_with_version


pytestmark = pytest.mark.django_db


def _interfering(record_pk, times):
    calls = []

    def mutate(record):
        calls.append(record.version)
        if len(calls) <= times:
            StockRecord.objects.filter(pk=record_pk).update(
                version=F('version') + 1,
                on_hand=F('on_hand') + 1,
            )
        return {'on_hand': record.on_hand - 10}

    return mutate, calls


def test_lost_race_is_retried_with_fresh_values(stocked):
    mutate, calls = _interfering(stocked.pk, times=1)

    record = update_with_version(
        StockRecord.objects, stocked.pk, mutate,
        not_found=StockError('STOCK_RECORD_NOT_FOUND'),
    )

    assert len(calls) == 2
    # Second attempt saw the concurrent +1
    assert record.on_hand == Decimal('91')
    stocked.refresh_from_db()
    assert stocked.on_hand == Decimal('91')
    assert stocked.version == record.version


def test_retries_exhausted(stocked, settings):
    settings.CONSIGNMAN = {'MAX_UPDATE_RETRIES': 2}
    mutate, calls = _interfering(stocked.pk, times=99)

    with pytest.raises(StockError) as exc:
        update_with_version(
            StockRecord.objects, stocked.pk, mutate,
            not_found=StockError('STOCK_RECORD_NOT_FOUND'),
        )

    assert exc.value.code == 'CONCURRENT_MODIFICATION'
    assert exc.value.is_transient
    assert exc.value.data['attempts'] == 2
    assert len(calls) == 2


def test_noop_mutation_skips_write(stocked):
    record = update_with_version(
        StockRecord.objects, stocked.pk, lambda r: None,
        not_found=StockError('STOCK_RECORD_NOT_FOUND'),
    )

    assert record.version == stocked.version


def test_missing_row(db):
    with pytest.raises(StockError) as exc:
        update_with_version(
            StockRecord.objects, 12345, lambda r: {'on_hand': 0},
            not_found=StockError('STOCK_RECORD_NOT_FOUND', pk=12345),
        )

    assert exc.value.code == 'STOCK_RECORD_NOT_FOUND'
