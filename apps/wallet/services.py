"""
Wallet service.

Balance reads, debits for subscription payments and refund credits. Every
balance change locks the wallet row and writes a ledger line in the same
transaction.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import DatabaseError, transaction

from apps.accounts.models import User

from .exceptions import (
    InsufficientWalletBalanceError,
    InvalidWalletAmountError,
    WalletUnavailableError,
)
from .models import TransactionKind, TransactionReason, Wallet, WalletTransaction

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def _to_amount(amount) -> Decimal:
    amount = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise InvalidWalletAmountError()
    return amount


def get_wallet_balance(*, member: User) -> Decimal:
    """
    Current balance; a member without a wallet has a zero balance.

    Raises:
        WalletUnavailableError: If the wallet store cannot be read
    """
    try:
        wallet = Wallet.objects.filter(member=member).only('balance').first()
    except DatabaseError as exc:
        logger.exception("Wallet balance lookup failed", extra={'extra_data': {'member_id': str(member.id)}})
        raise WalletUnavailableError() from exc

    return wallet.balance if wallet else Decimal('0.00')


def _locked_wallet(member: User) -> Wallet:
    try:
        wallet, _ = Wallet.objects.select_for_update().get_or_create(member=member)
    except DatabaseError as exc:
        logger.exception("Wallet lock failed", extra={'extra_data': {'member_id': str(member.id)}})
        raise WalletUnavailableError() from exc
    return wallet


@transaction.atomic
def debit_wallet(
    *,
    member: User,
    amount,
    reference: str,
    reason: str = TransactionReason.SUBSCRIPTION_PAYMENT,
    note: str = ''
) -> WalletTransaction:
    """
    Take amount from the member's wallet.

    Raises:
        InvalidWalletAmountError: Amount not positive
        InsufficientWalletBalanceError: Balance lower than amount
        WalletUnavailableError: Wallet store unreachable
    """
    amount = _to_amount(amount)
    wallet = _locked_wallet(member)

    if wallet.balance < amount:
        raise InsufficientWalletBalanceError(
            f"Wallet balance {wallet.balance} is lower than {amount}."
        )

    wallet.balance -= amount
    wallet.save(update_fields=['balance', 'updated_at'])

    entry = WalletTransaction.objects.create(
        wallet=wallet,
        kind=TransactionKind.DEBIT,
        reason=reason,
        amount=amount,
        balance_after=wallet.balance,
        reference=reference,
        note=note,
    )
    logger.info(
        "Wallet debited",
        extra={'extra_data': {'member_id': str(member.id), 'amount': amount, 'reference': reference}},
    )
    return entry


@transaction.atomic
def credit_wallet(
    *,
    member: User,
    amount,
    reference: str,
    reason: str = TransactionReason.TOP_UP,
    note: str = ''
) -> WalletTransaction:
    """
    Add amount to the member's wallet, creating the wallet if needed.

    Raises:
        InvalidWalletAmountError: Amount not positive
        WalletUnavailableError: Wallet store unreachable
    """
    amount = _to_amount(amount)
    wallet = _locked_wallet(member)

    wallet.balance += amount
    wallet.save(update_fields=['balance', 'updated_at'])

    entry = WalletTransaction.objects.create(
        wallet=wallet,
        kind=TransactionKind.CREDIT,
        reason=reason,
        amount=amount,
        balance_after=wallet.balance,
        reference=reference,
        note=note,
    )
    logger.info(
        "Wallet credited",
        extra={'extra_data': {'member_id': str(member.id), 'amount': amount, 'reference': reference}},
    )
    return entry


def refund_skipped_delivery(*, member: User, quantity: int, unit_price, reference: str) -> Decimal:
    """
    Credit the value of a skipped pre-paid delivery back to the wallet.

    Returns:
        The refunded amount (zero when the delivery had no price)
    """
    amount = (Decimal(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
    if amount <= 0:
        return Decimal('0.00')

    credit_wallet(
        member=member,
        amount=amount,
        reference=reference,
        reason=TransactionReason.SKIP_REFUND,
        note=f"Refund for {quantity} skipped item(s)",
    )
    return amount
