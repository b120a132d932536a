"""
Versioned conditional updates — optimistic concurrency for single rows.

Every StockRecord and Allocation write follows the same pattern:

    1. read the row (and its version)
    2. check preconditions and compute the new field values
    3. UPDATE ... WHERE pk = ? AND version = <read version>
    4. zero rows updated → somebody else won the race → go back to 1

After MAX_UPDATE_RETRIES lost races the caller gets
StockError('CONCURRENT_MODIFICATION'), a transient error it may retry.
"""

import logging
from collections.abc import Callable
from typing import Any

from django.db import models
from django.db.models import F
from django.utils import timezone

from consignman.conf import consignman_settings
from consignman.exceptions import StockError

logger = logging.getLogger('consignman')


def update_with_version(queryset: models.QuerySet, pk: Any,
                        mutate: Callable[[models.Model], dict[str, Any] | None],
                        *, not_found: StockError) -> models.Model:
    """
    Apply ``mutate`` to one row under a version check, retrying lost races.

    Args:
        queryset: Base queryset of the model (e.g. ``Allocation.objects``)
        pk: Primary key of the row
        mutate: Receives the freshly read instance; raises StockError when a
            precondition fails, returns the fields to write (or None for no-op)
        not_found: Error raised when the row does not exist

    Returns:
        The instance with the written values applied

    Raises:
        StockError: ``not_found``, whatever ``mutate`` raises, or
            'CONCURRENT_MODIFICATION' when retries are exhausted
    """
    attempts = max(1, consignman_settings.MAX_UPDATE_RETRIES)

    for attempt in range(1, attempts + 1):
        try:
            instance = queryset.get(pk=pk)
        except queryset.model.DoesNotExist:
            raise not_found

        changes = mutate(instance)
        if not changes:
            return instance

        changes.setdefault('updated_at', timezone.now())
        updated = queryset.filter(pk=pk, version=instance.version).update(
            version=F('version') + 1,
            **changes,
        )
        if updated:
            for field, value in changes.items():
                setattr(instance, field, value)
            instance.version += 1
            return instance

        logger.info(
            "consignman.update.conflict",
            extra={
                "model": queryset.model.__name__,
                "pk": pk,
                "attempt": attempt,
                "version": instance.version,
            },
        )

    logger.warning(
        "consignman.update.retries_exhausted",
        extra={"model": queryset.model.__name__, "pk": pk, "attempts": attempts},
    )
    raise StockError(
        'CONCURRENT_MODIFICATION',
        model=queryset.model.__name__,
        pk=pk,
        attempts=attempts,
    )
