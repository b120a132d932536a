"""
Initial migration for Consignman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Consignman models: StockRecord, StockMovement, Allocation, Order, OrderLine, OrderSequence."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='StockRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shop_id', models.CharField(db_index=True, max_length=64, verbose_name='Shop')),
                ('product_id', models.CharField(max_length=64, verbose_name='Product')),
                ('on_hand', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='On hand')),
                ('unit', models.CharField(default='pcs', max_length=20, verbose_name='Unit')),
                ('unit_size', models.DecimalField(decimal_places=3, default=Decimal('1'), max_digits=12, verbose_name='Unit size')),
                ('version', models.PositiveIntegerField(default=0, editable=False)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Stock record',
                'verbose_name_plural': 'Stock records',
                'indexes': [models.Index(fields=['product_id'], name='stock_record_product_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('shop_id', 'product_id'), name='unique_stock_record_sku'),
                    models.CheckConstraint(condition=models.Q(('on_hand__gte', 0)), name='stock_record_on_hand_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('delta', models.DecimalField(decimal_places=3, help_text='Positive = in, negative = out', max_digits=12, verbose_name='Delta')),
                ('kind', models.CharField(choices=[('receive', 'Received'), ('recount', 'Recount'), ('allocate', 'Allocated'), ('return', 'Returned'), ('sale', 'Sale'), ('cancel', 'Cancellation')], db_index=True, max_length=20, verbose_name='Kind')),
                ('reference', models.CharField(blank=True, db_index=True, default='', max_length=64, verbose_name='Reference')),
                ('reason', models.CharField(blank=True, default='', max_length=255, verbose_name='Reason')),
                ('actor_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Actor')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('record', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='consignman.stockrecord', verbose_name='Stock record')),
            ],
            options={
                'verbose_name': 'Stock movement',
                'verbose_name_plural': 'Stock movements',
                'ordering': ['timestamp', 'pk'],
                'indexes': [
                    models.Index(fields=['record', 'timestamp'], name='movement_record_ts_idx'),
                    models.Index(fields=['record', 'kind'], name='movement_record_kind_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Allocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shop_id', models.CharField(db_index=True, max_length=64, verbose_name='Shop')),
                ('product_id', models.CharField(max_length=64, verbose_name='Product')),
                ('intermediary_id', models.CharField(db_index=True, max_length=64, verbose_name='Intermediary')),
                ('assigned_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Cumulative quantity ever handed to the intermediary', max_digits=12, verbose_name='Assigned')),
                ('remaining_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Not yet sold nor returned', max_digits=12, verbose_name='Remaining')),
                ('status', models.CharField(choices=[('assigned', 'Assigned'), ('sold', 'Sold out'), ('returned', 'Returned')], db_index=True, default='assigned', max_length=20, verbose_name='Status')),
                ('assigned_by', models.CharField(max_length=64, verbose_name='Assigned by')),
                ('assigned_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('sold_at', models.DateTimeField(blank=True, null=True)),
                ('returned_at', models.DateTimeField(blank=True, null=True)),
                ('version', models.PositiveIntegerField(default=0, editable=False)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Allocation',
                'verbose_name_plural': 'Allocations',
                'indexes': [
                    models.Index(fields=['shop_id', 'product_id'], name='allocation_sku_idx'),
                    models.Index(fields=['intermediary_id', 'status'], name='allocation_holder_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('product_id', 'intermediary_id'), name='unique_allocation_per_intermediary'),
                    models.CheckConstraint(condition=models.Q(('remaining_quantity__gte', 0)), name='allocation_remaining_non_negative'),
                    models.CheckConstraint(condition=models.Q(('remaining_quantity__lte', models.F('assigned_quantity'))), name='allocation_remaining_within_assigned'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_id', models.PositiveIntegerField(unique=True, verbose_name='Order number')),
                ('seller_id', models.CharField(db_index=True, max_length=64, verbose_name='Seller')),
                ('seller_role', models.CharField(choices=[('shop_staff', 'Shop staff'), ('agent', 'Agent'), ('seller', 'Seller')], max_length=20, verbose_name='Seller role')),
                ('store_owner_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Store owner')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
                ('payment_method', models.CharField(choices=[('cash', 'Cash'), ('card', 'Card'), ('installment', 'Installment')], default='cash', max_length=20, verbose_name='Payment method')),
                ('total_sum', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14, verbose_name='Total')),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_by', models.CharField(blank=True, default='', max_length=64)),
                ('cancellation_reason', models.CharField(blank=True, default='', max_length=255)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Order',
                'verbose_name_plural': 'Orders',
                'ordering': ['-order_id'],
                'indexes': [models.Index(fields=['seller_id', 'status'], name='order_seller_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='OrderLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('position', models.PositiveSmallIntegerField(default=0)),
                ('product_id', models.CharField(max_length=64, verbose_name='Product')),
                ('shop_id', models.CharField(max_length=64, verbose_name='Shop')),
                ('name', models.CharField(blank=True, default='', max_length=255)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantity')),
                ('price', models.DecimalField(decimal_places=2, max_digits=14, verbose_name='Unit price')),
                ('unit', models.CharField(default='pcs', max_length=20)),
                ('unit_size', models.DecimalField(decimal_places=3, default=Decimal('1'), max_digits=12)),
                ('via_allocation', models.BooleanField(default=False)),
                ('allocation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='order_lines', to='consignman.allocation')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='consignman.order')),
            ],
            options={
                'verbose_name': 'Order line',
                'verbose_name_plural': 'Order lines',
                'ordering': ['order', 'position'],
                'indexes': [models.Index(fields=['shop_id', 'product_id'], name='order_line_sku_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='order_line_quantity_positive'),
                    models.CheckConstraint(condition=models.Q(('price__gte', 0)), name='order_line_price_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50, unique=True)),
                ('last_value', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'Order sequence',
                'verbose_name_plural': 'Order sequences',
            },
        ),
    ]
