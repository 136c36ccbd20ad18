from django.contrib import admin
from django.utils.html import format_html
from .models import TransactionKind, Wallet, WalletTransaction


class WalletTransactionInline(admin.TabularInline):
    """Read-only ledger within a wallet."""
    model = WalletTransaction
    extra = 0
    fields = ['created_at', 'kind_badge', 'reason', 'amount', 'balance_after', 'reference', 'note']
    readonly_fields = fields
    ordering = ['-created_at']

    def kind_badge(self, obj):
        bg = '#5E8E6B' if obj.kind == TransactionKind.CREDIT else '#B85C5C'
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, obj.get_kind_display()
        )
    kind_badge.short_description = 'Kind'

    def has_add_permission(self, request, obj=None):
        """Ledger lines are written by the wallet service only."""
        return False


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ['member', 'balance', 'currency', 'updated_at']
    search_fields = ['member__email', 'member__display_name', 'member__mobile']
    readonly_fields = ['balance', 'created_at', 'updated_at']
    inlines = [WalletTransactionInline]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('member')
