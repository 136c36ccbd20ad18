from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class TransactionKind(models.TextChoices):
    CREDIT = 'CREDIT', 'Credit'
    DEBIT = 'DEBIT', 'Debit'


class TransactionReason(models.TextChoices):
    TOP_UP = 'TOP_UP', 'Top-up'
    SUBSCRIPTION_PAYMENT = 'SUBSCRIPTION_PAYMENT', 'Subscription payment'
    SKIP_REFUND = 'SKIP_REFUND', 'Skipped delivery refund'
    ADJUSTMENT = 'ADJUSTMENT', 'Manual adjustment'


class Wallet(models.Model):
    """Prepaid member balance used towards subscription payments."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='wallet'
    )
    balance = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    currency = models.CharField(max_length=3, default='INR')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'wallets'

    def __str__(self):
        return f"{self.member.email}: {self.balance} {self.currency}"


class WalletTransaction(models.Model):
    """Immutable ledger line; balance_after is the wallet balance once applied."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    wallet = models.ForeignKey(Wallet, on_delete=models.CASCADE, related_name='transactions')
    kind = models.CharField(max_length=10, choices=TransactionKind.choices)
    reason = models.CharField(max_length=30, choices=TransactionReason.choices)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    balance_after = models.DecimalField(max_digits=10, decimal_places=2)
    reference = models.CharField(max_length=100, blank=True, db_index=True)
    note = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'wallet_transactions'
        indexes = [
            models.Index(fields=['wallet', 'created_at']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        sign = '+' if self.kind == TransactionKind.CREDIT else '-'
        return f"{sign}{self.amount} ({self.get_reason_display()})"
