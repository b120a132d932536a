"""
Consignman Admin — read-only views for production debugging.

Quantities only change through the consignment service, so every admin
here is read-only:
- StockRecord: on-hand cache with "audit" and "recalculate" actions
- StockMovement: immutable ledger
- Allocation: what each intermediary holds
- Order: sales with their lines and "cancel" action
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from consignman.exceptions import StockError
from consignman.models import Allocation, Order, OrderLine, OrderStatus, StockMovement, StockRecord

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """No add / change / delete from the admin."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# STOCK RECORD ADMIN
# =========================================================================

@admin.register(StockRecord)
class StockRecordAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockRecord admin — read-only with audit actions."""

    list_display = ['shop_id', 'product_id', 'on_hand', 'unit', 'updated_at']
    list_filter = ['shop_id']
    search_fields = ['shop_id', 'product_id']
    readonly_fields = ['shop_id', 'product_id', 'on_hand', 'unit', 'unit_size',
                       'version', 'metadata', 'created_at', 'updated_at']
    actions = ['audit_records', 'recalculate_records']

    @admin.action(description=_('Audit selected records'))
    def audit_records(self, request, queryset):
        from consignman.services.audit import ConsistencyInvariantChecker

        failing = 0
        for record in queryset:
            report = ConsistencyInvariantChecker.verify(record.shop_id, record.product_id)
            if not report.is_consistent:
                failing += 1
                self.message_user(
                    request,
                    f"{report.sku}: " + '; '.join(str(v) for v in report.violations),
                    level='warning',
                )

        self.message_user(
            request,
            _('{total} record(s) audited, {failing} inconsistent.').format(
                total=queryset.count(), failing=failing,
            ),
        )

    @admin.action(description=_('Rebuild on-hand from ledger'))
    def recalculate_records(self, request, queryset):
        for record in queryset:
            record.recalculate()
        self.message_user(request, _('{count} record(s) recalculated.').format(count=queryset.count()))


# =========================================================================
# STOCK MOVEMENT ADMIN (read-only ledger)
# =========================================================================

@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockMovement admin — immutable ledger."""

    list_display = ['timestamp', 'record', 'delta', 'kind', 'reference', 'actor_id']
    list_filter = ['kind', 'timestamp']
    search_fields = ['reference', 'reason', 'record__product_id']
    readonly_fields = ['record', 'delta', 'kind', 'reference', 'reason',
                       'actor_id', 'metadata', 'timestamp']
    date_hierarchy = 'timestamp'


# =========================================================================
# ALLOCATION ADMIN
# =========================================================================

@admin.register(Allocation)
class AllocationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Allocation admin — read-only."""

    list_display = ['id', 'intermediary_id', 'shop_id', 'product_id',
                    'remaining_quantity', 'assigned_quantity', 'status', 'assigned_at']
    list_filter = ['status', 'shop_id']
    search_fields = ['intermediary_id', 'product_id']
    readonly_fields = ['shop_id', 'product_id', 'intermediary_id', 'assigned_quantity',
                       'remaining_quantity', 'status', 'assigned_by', 'assigned_at',
                       'sold_at', 'returned_at', 'version', 'metadata']


# =========================================================================
# ORDER ADMIN (with cancel action)
# =========================================================================

class OrderLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = OrderLine
    extra = 0
    fields = ['position', 'product_id', 'name', 'quantity', 'unit', 'price',
              'via_allocation', 'allocation']
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Order admin — read-only with cancel action."""

    list_display = ['order_id', 'seller_id', 'seller_role', 'status',
                    'payment_method', 'total_sum', 'completed_at']
    list_filter = ['status', 'seller_role', 'payment_method']
    search_fields = ['=order_id', 'seller_id', 'store_owner_id']
    readonly_fields = ['order_id', 'seller_id', 'seller_role', 'store_owner_id',
                       'status', 'payment_method', 'total_sum', 'completed_at',
                       'cancelled_at', 'cancelled_by', 'cancellation_reason',
                       'metadata', 'created_at']
    inlines = [OrderLineInline]
    actions = ['cancel_orders']

    @admin.action(description=_('Cancel selected orders'))
    def cancel_orders(self, request, queryset):
        from consignman.services.orders import OrderReconciler

        count = 0
        for order in queryset.filter(status=OrderStatus.COMPLETED):
            try:
                OrderReconciler.reverse(
                    order.order_id,
                    reason='Cancelled via admin',
                    cancelled_by=str(request.user.pk or ''),
                )
                count += 1
            except StockError as exc:
                logger.warning("cancel_orders: failed to cancel %s: %s", order.order_id, exc)

        self.message_user(request, _('{count} order(s) cancelled.').format(count=count))
