from decimal import Decimal

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from django.urls import reverse
from django.utils.html import format_html

from apps.subscriptions.models import SubscriptionStatus
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Members with their wallet balance and running subscriptions.

    Staff accounts are listed here too; they record payments and update
    delivery status from the subscription admin.
    """

    list_display = [
        'email',
        'display_name',
        'mobile',
        'role',
        'wallet_balance',
        'active_subscriptions',
        'created_at',
    ]
    list_filter = ['is_staff', 'is_active']
    search_fields = ['email', 'display_name', 'mobile']
    ordering = ['-created_at']

    # BaseUserAdmin expects a username field
    fieldsets = (
        (None, {'fields': ('email', 'display_name', 'mobile', 'password')}),
        ('Access', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Timestamps', {'fields': ('created_at', 'last_login'), 'classes': ('collapse',)}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'mobile', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = []

    def get_queryset(self, request):
        qs = super().get_queryset(request).select_related('wallet')
        return qs.annotate(
            active_subscription_count=Count(
                'subscriptions',
                filter=Q(subscriptions__status=SubscriptionStatus.ACTIVE),
            )
        )

    def role(self, obj):
        return 'Staff' if obj.is_staff else 'Member'
    role.admin_order_field = 'is_staff'

    def wallet_balance(self, obj):
        wallet = getattr(obj, 'wallet', None)
        return wallet.balance if wallet else Decimal('0.00')

    def active_subscriptions(self, obj):
        count = obj.active_subscription_count
        if not count:
            return 0
        url = reverse('admin:subscriptions_subscription_changelist')
        return format_html('<a href="{}?member__id__exact={}">{}</a>', url, obj.id, count)
    active_subscriptions.short_description = 'Active subscriptions'
    active_subscriptions.admin_order_field = 'active_subscription_count'
