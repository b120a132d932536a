"""
Management command to audit stock pools.

Usage:
    python manage.py audit_stock
    python manage.py audit_stock --shop shop-1 --product sku-9
    python manage.py audit_stock --repair
    python manage.py audit_stock --strict
"""

from django.core.management.base import BaseCommand, CommandError

from consignman.models import StockRecord
from consignman.services.audit import ConsistencyInvariantChecker


class Command(BaseCommand):
    """Audit stock pools command."""

    help = 'Checks that shop stock, allocations and sales add up to what was stocked'

    def add_arguments(self, parser):
        parser.add_argument('--shop', help='Only audit this shop')
        parser.add_argument('--product', help='Only audit this product')
        parser.add_argument(
            '--repair',
            action='store_true',
            help='Rebuild on-hand caches from the movement ledger before auditing',
        )
        parser.add_argument(
            '--strict',
            action='store_true',
            help='Exit with an error when any violation is found',
        )

    def handle(self, *args, **options):
        shop_id = options['shop']
        product_id = options['product']

        if options['repair']:
            records = StockRecord.objects.all()
            if shop_id:
                records = records.filter(shop_id=shop_id)
            if product_id:
                records = records.filter(product_id=product_id)
            repaired = 0
            for record in records:
                before = record.on_hand
                if record.recalculate() != before:
                    repaired += 1
                    self.stdout.write(f'Repaired {record.sku}: {before} → {record.on_hand}')
            self.stdout.write(f'{repaired} record(s) repaired')

        reports = ConsistencyInvariantChecker.verify_all(shop_id=shop_id, product_id=product_id)
        failing = [r for r in reports if not r.is_consistent]

        for report in failing:
            self.stdout.write(self.style.ERROR(f'{report.sku}:'))
            for violation in report.violations:
                self.stdout.write(f'  {violation}')

        summary = f'{len(reports)} SKU(s) audited, {len(failing)} inconsistent'
        if failing and options['strict']:
            raise CommandError(summary)
        if failing:
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
