from rest_framework import serializers
from .models import Wallet, WalletTransaction


class WalletTransactionSerializer(serializers.ModelSerializer):
    """Wallet ledger line."""

    class Meta:
        model = WalletTransaction
        fields = [
            'id',
            'kind',
            'reason',
            'amount',
            'balance_after',
            'reference',
            'note',
            'created_at',
        ]
        read_only_fields = fields


class WalletSerializer(serializers.ModelSerializer):
    """Wallet balance with the most recent transactions."""

    recent_transactions = serializers.SerializerMethodField()

    class Meta:
        model = Wallet
        fields = ['balance', 'currency', 'updated_at', 'recent_transactions']
        read_only_fields = fields

    def get_recent_transactions(self, obj):
        limit = self.context.get('transaction_limit', 20)
        return WalletTransactionSerializer(obj.transactions.all()[:limit], many=True).data
