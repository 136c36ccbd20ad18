from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html
from .models import (
    DeliveryScheduleEntry,
    DeliveryStatus,
    PaymentMode,
    PaymentStatus,
    Subscription,
    SubscriptionOrder,
    SubscriptionStatus,
)
from .services import record_payment, update_delivery_status
from .services.lifecycle import status_label


BADGE = (
    '<span style="background: {}; color: {}; padding: 3px 8px; '
    'border-radius: 10px; font-size: 11px;">{}</span>'
)

PAYMENT_COLORS = {
    PaymentStatus.PENDING: ('#F2D08A', '#3B2A00'),
    PaymentStatus.PAID: ('#5E8E6B', 'white'),
    PaymentStatus.FAILED: ('#B85C5C', 'white'),
    PaymentStatus.CANCELLED: ('#9A9A9A', 'white'),
}

DELIVERY_COLORS = {
    DeliveryStatus.PENDING: ('#F2D08A', '#3B2A00'),
    DeliveryStatus.DELIVERED: ('#5E8E6B', 'white'),
    DeliveryStatus.NOT_DELIVERED: ('#B85C5C', 'white'),
    DeliveryStatus.CANCELLED: ('#9A9A9A', 'white'),
    DeliveryStatus.SKIPPED: ('#7A9CC6', 'white'),
}


def payment_badge(obj):
    bg, fg = PAYMENT_COLORS.get(obj.payment_status, ('#ccc', '#666'))
    return format_html(BADGE, bg, fg, obj.get_payment_status_display())


class DeliveryScheduleEntryInline(admin.TabularInline):
    """Inline admin for delivery entries within a subscription."""
    model = DeliveryScheduleEntry
    extra = 0
    fields = ['delivery_date', 'quantity', 'status_badge', 'fulfillment_channel', 'refund_amount']
    readonly_fields = fields

    def status_badge(self, obj):
        bg, fg = DELIVERY_COLORS.get(obj.status, ('#ccc', '#666'))
        label = status_label(
            obj.status,
            obj.delivery_date,
            timezone.localdate(),
            skip_source=obj.skip_source,
            fulfillment_channel=obj.fulfillment_channel,
        )
        return format_html(BADGE, bg, fg, label)
    status_badge.short_description = 'Status'

    def has_add_permission(self, request, obj=None):
        """Entries are created at checkout only."""
        return False


class SubscriptionInline(admin.TabularInline):
    model = Subscription
    extra = 0
    fields = ['product', 'variant', 'delivery_pattern', 'quantity', 'alt_quantity', 'amount', 'status']
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SubscriptionOrder)
class SubscriptionOrderAdmin(admin.ModelAdmin):
    """
    Admin interface for subscription orders.

    Lists orders with payment status; the mark-paid action covers cash and
    bank payments collected by the dispatch team.
    """

    list_display = [
        'order_no',
        'member',
        'period_days',
        'start_date',
        'total_amount',
        'wallet_amount',
        'payable_amount',
        'payment_status_badge',
        'created_at',
    ]
    list_filter = ['payment_status', 'period_days', 'created_at']
    search_fields = ['order_no', 'member__email', 'member__display_name', 'member__mobile', 'payment_reference']
    readonly_fields = ['order_no', 'total_amount', 'wallet_amount', 'payable_amount', 'paid_at', 'created_at', 'updated_at']
    inlines = [SubscriptionInline]
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Order', {
            'fields': ('order_no', 'member', 'delivery_address_id', 'period_days', 'start_date')
        }),
        ('Financial Details', {
            'fields': ('total_amount', 'wallet_amount', 'payable_amount', 'currency')
        }),
        ('Payment', {
            'fields': ('payment_status', 'payment_mode', 'payment_reference', 'paid_at')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['mark_paid_cash']

    def payment_status_badge(self, obj):
        return payment_badge(obj)
    payment_status_badge.short_description = 'Payment'
    payment_status_badge.admin_order_field = 'payment_status'

    @admin.action(description='Record cash payment')
    def mark_paid_cash(self, request, queryset):
        count = 0
        for order in queryset.filter(payment_status=PaymentStatus.PENDING):
            record_payment(order_id=order.id, payment_mode=PaymentMode.CASH, payment_reference='admin')
            count += 1
        self.message_user(request, f'Recorded payment for {count} order(s).')

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('member')


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """Admin interface for subscriptions with inline delivery schedule."""

    list_display = [
        'product_label',
        'member',
        'delivery_pattern',
        'quantity',
        'period_days',
        'start_date',
        'expiry_date',
        'amount',
        'payment_status_badge',
        'status_badge',
    ]
    list_filter = ['status', 'payment_status', 'delivery_pattern', 'period_days']
    search_fields = ['product__name', 'variant__name', 'member__email', 'order__order_no']
    readonly_fields = [
        'order',
        'unit_price',
        'mrp',
        'delivery_count',
        'total_quantity',
        'amount',
        'savings',
        'created_at',
        'updated_at',
    ]
    inlines = [DeliveryScheduleEntryInline]

    def payment_status_badge(self, obj):
        return payment_badge(obj)
    payment_status_badge.short_description = 'Payment'

    def status_badge(self, obj):
        if obj.status == SubscriptionStatus.CANCELLED:
            return format_html(BADGE, '#9A9A9A', 'white', 'Cancelled')
        if obj.is_expired():
            return format_html(BADGE, '#E8DDD4', '#2C1810', 'Expired')
        return format_html(BADGE, '#5E8E6B', 'white', 'Active')
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('member', 'product', 'variant', 'order')


@admin.register(DeliveryScheduleEntry)
class DeliveryScheduleEntryAdmin(admin.ModelAdmin):
    """Dispatch view of delivery entries."""

    list_display = [
        'delivery_date',
        'get_product',
        'get_member',
        'quantity',
        'status',
        'fulfillment_channel',
        'skip_source',
        'refund_amount',
    ]
    list_filter = ['status', 'delivery_date', 'fulfillment_channel', 'subscription__payment_status']
    search_fields = ['subscription__member__email', 'subscription__product__name', 'subscription__order__order_no']
    readonly_fields = [
        'subscription',
        'delivery_date',
        'quantity',
        'status',
        'fulfillment_channel',
        'skip_source',
        'refund_amount',
        'created_at',
        'updated_at',
    ]
    date_hierarchy = 'delivery_date'
    actions = ['mark_delivered', 'mark_not_delivered']

    def _update_pending(self, request, queryset, status):
        count = 0
        for entry in queryset.filter(status=DeliveryStatus.PENDING):
            update_delivery_status(entry_id=entry.id, status=status, notes=f'admin: {request.user.email}')
            count += 1
        self.message_user(request, f'Updated {count} pending delivery(ies).')

    @admin.action(description='Mark selected pending deliveries as delivered')
    def mark_delivered(self, request, queryset):
        self._update_pending(request, queryset, DeliveryStatus.DELIVERED)

    @admin.action(description='Mark selected pending deliveries as not delivered')
    def mark_not_delivered(self, request, queryset):
        self._update_pending(request, queryset, DeliveryStatus.NOT_DELIVERED)

    def get_product(self, obj):
        return obj.subscription.product_label
    get_product.short_description = 'Product'

    def get_member(self, obj):
        return obj.subscription.member.email
    get_member.short_description = 'Member'
    get_member.admin_order_field = 'subscription__member__email'

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('subscription', 'subscription__member', 'subscription__product', 'subscription__variant')
