"""
Service layer tests for the subscriptions app.

Tests cover:
- Quoting and checkout (wallet application, persistence, rollback)
- Skips and refunds
- Staff delivery updates
- Cancellation and payment recording
"""

import re
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

from apps.catalog.exceptions import ProductNotFoundError, VariantNotFoundError, VariantUnavailableError
from apps.catalog.models import ProductVariant
from apps.wallet.exceptions import InsufficientWalletBalanceError
from apps.wallet.models import TransactionKind, TransactionReason, WalletTransaction
from apps.wallet.services import get_wallet_balance
from apps.subscriptions.exceptions import (
    DeliveryEntryNotFoundError,
    DeliveryTransitionError,
    InvalidSubscriptionRequestError,
    PatternNotAllowedError,
    PaymentAlreadyRecordedError,
    SubscriptionAlreadyCancelledError,
    SubscriptionNotFoundError,
)
from apps.subscriptions.models import (
    DeliveryPattern,
    DeliveryScheduleEntry,
    DeliveryStatus,
    FulfillmentChannel,
    PaymentMode,
    PaymentStatus,
    SkipSource,
    Subscription,
    SubscriptionOrder,
    SubscriptionStatus,
)
from apps.subscriptions.services import (
    cancel_order,
    cancel_subscription,
    create_subscription_order,
    delivery_sheet,
    quote_subscription,
    record_payment,
    skip_delivery,
    to_checkout_payload,
    update_delivery_status,
)


# =============================================================================
# Quote Tests
# =============================================================================

@pytest.mark.django_db
class TestQuoteSubscription:
    """Tests for quote_subscription()."""

    def test_quote_uses_period_price(self, funded_member, milk_selection, start_date, today):
        """15-day daily milk at 35.00 against MRP 40.00."""
        quote = quote_subscription(
            member=funded_member,
            selections=[milk_selection],
            period_days=15,
            start_date=start_date,
            today=today,
        )

        assert quote.totals.delivery_count == 15
        assert quote.totals.total_price == Decimal('525.00')
        assert quote.totals.savings == Decimal('75.00')
        assert quote.wallet.wallet_deduction == Decimal('525.00')
        assert quote.wallet.amount_payable == Decimal('0.00')
        assert quote.expiry_date == start_date + timedelta(days=14)

    def test_quote_persists_nothing(self, funded_member, milk_selection, start_date, today):
        quote_subscription(
            member=funded_member,
            selections=[milk_selection],
            period_days=15,
            start_date=start_date,
            today=today,
        )

        assert SubscriptionOrder.objects.count() == 0
        assert DeliveryScheduleEntry.objects.count() == 0

    def test_wallet_not_read_when_unused(self, member, milk_selection, start_date, today):
        with patch('apps.subscriptions.services.checkout.get_wallet_balance') as balance:
            quote = quote_subscription(
                member=member,
                selections=[milk_selection],
                period_days=15,
                start_date=start_date,
                use_wallet=False,
                today=today,
            )

        balance.assert_not_called()
        assert quote.wallet.amount_payable == Decimal('525.00')

    def test_start_date_needs_lead_time(self, member, milk_selection, today):
        with pytest.raises(InvalidSubscriptionRequestError):
            quote_subscription(
                member=member,
                selections=[milk_selection],
                period_days=15,
                start_date=today + timedelta(days=2),
                today=today,
            )

    def test_period_must_be_offered(self, member, milk_selection, start_date, today):
        with pytest.raises(InvalidSubscriptionRequestError, match='Period'):
            quote_subscription(
                member=member,
                selections=[milk_selection],
                period_days=7,
                start_date=start_date,
                today=today,
            )

    def test_empty_selection_rejected(self, member, start_date, today):
        with pytest.raises(InvalidSubscriptionRequestError):
            quote_subscription(member=member, selections=[], period_days=15, start_date=start_date, today=today)

    def test_pattern_policy_enforced(self, member, milk_selection, start_date, today):
        selection = {**milk_selection, 'delivery_pattern': DeliveryPattern.SELECT_DAYS, 'weekdays': ['mon', 'wed', 'fri']}

        with pytest.raises(PatternNotAllowedError):
            quote_subscription(member=member, selections=[selection], period_days=15, start_date=start_date, today=today)

    def test_inactive_product_rejected(self, member, milk, milk_selection, start_date, today):
        milk.is_active = False
        milk.save()

        with pytest.raises(ProductNotFoundError):
            quote_subscription(member=member, selections=[milk_selection], period_days=15, start_date=start_date, today=today)

    def test_variant_of_other_product_rejected(self, member, curd, milk_500, start_date, today):
        selection = {'product_id': curd.id, 'variant_id': milk_500.id, 'quantity': 1}

        with pytest.raises(VariantNotFoundError):
            quote_subscription(member=member, selections=[selection], period_days=15, start_date=start_date, today=today)

    def test_unavailable_variant_rejected(self, member, milk_500, milk_selection, start_date, today):
        ProductVariant.objects.filter(id=milk_500.id).update(is_available=False)

        with pytest.raises(VariantUnavailableError):
            quote_subscription(member=member, selections=[milk_selection], period_days=15, start_date=start_date, today=today)

    def test_product_without_variants_priced_on_product(self, member, curd, start_date, today):
        """Curd has no 30-day price, so the buy-once price applies."""
        selection = {'product_id': curd.id, 'quantity': 1}

        quote = quote_subscription(
            member=member, selections=[selection], period_days=30, start_date=start_date, use_wallet=False, today=today
        )

        assert quote.selections[0].unit_price == Decimal('55.00')
        assert quote.totals.total_price == Decimal('1650.00')


# =============================================================================
# Checkout Tests
# =============================================================================

@pytest.mark.django_db
class TestCreateSubscriptionOrder:
    """Tests for create_subscription_order()."""

    def test_wallet_covers_order(self, paid_order, funded_member):
        """Fully wallet-paid order is PAID and the wallet is debited."""
        assert paid_order.payment_status == PaymentStatus.PAID
        assert paid_order.payment_mode == PaymentMode.WALLET
        assert paid_order.paid_at is not None
        assert paid_order.total_amount == Decimal('525.00')
        assert paid_order.wallet_amount == Decimal('525.00')
        assert paid_order.payable_amount == Decimal('0.00')
        assert get_wallet_balance(member=funded_member) == Decimal('475.00')

        debit = WalletTransaction.objects.get(kind=TransactionKind.DEBIT)
        assert debit.reason == TransactionReason.SUBSCRIPTION_PAYMENT
        assert debit.reference == paid_order.order_no

    def test_order_number_format(self, paid_order):
        assert re.match(r'^SUB-\d{8}-[0-9A-F]{6}$', paid_order.order_no)

    def test_schedule_entries_created(self, paid_subscription, start_date):
        entries = list(paid_subscription.delivery_entries.order_by('delivery_date'))

        assert len(entries) == 15
        assert entries[0].delivery_date == start_date
        assert entries[-1].delivery_date == paid_subscription.expiry_date
        assert all(entry.status == DeliveryStatus.PENDING for entry in entries)
        assert paid_subscription.delivery_count == 15
        assert paid_subscription.unit_price == Decimal('35.00')
        assert paid_subscription.mrp == Decimal('40.00')
        assert paid_subscription.savings == Decimal('75.00')

    def test_unpaid_order_waits_for_payment(self, unpaid_order):
        assert unpaid_order.payment_status == PaymentStatus.PENDING
        assert unpaid_order.payment_mode == ''
        assert unpaid_order.payable_amount == Decimal('525.00')
        assert unpaid_order.subscriptions.get().payment_status == PaymentStatus.PENDING

    def test_partial_wallet_leaves_balance_due(self, funded_member, milk_selection, start_date, today):
        """30 days x 2 at 30.00 = 1800.00; wallet covers 1000.00."""
        order = create_subscription_order(
            member=funded_member,
            selections=[{**milk_selection, 'quantity': 2}],
            period_days=30,
            start_date=start_date,
            delivery_address_id=7,
            today=today,
        )

        assert order.total_amount == Decimal('1800.00')
        assert order.wallet_amount == Decimal('1000.00')
        assert order.payable_amount == Decimal('800.00')
        assert order.payment_status == PaymentStatus.PENDING
        assert get_wallet_balance(member=funded_member) == Decimal('0.00')

    def test_multiple_selections_share_order(self, funded_member, milk, milk_500, curd, start_date, today):
        order = create_subscription_order(
            member=funded_member,
            selections=[
                {
                    'product_id': milk.id,
                    'variant_id': milk_500.id,
                    'delivery_pattern': DeliveryPattern.DAY1_DAY2,
                    'quantity': 2,
                    'alt_quantity': 1,
                },
                {
                    'product_id': curd.id,
                    'delivery_pattern': DeliveryPattern.SELECT_DAYS,
                    'quantity': 1,
                    'weekdays': [1, 3, 5],
                },
            ],
            period_days=30,
            start_date=start_date,
            delivery_address_id=7,
            use_wallet=False,
            today=today,
        )

        milk_sub = order.subscriptions.get(product=milk)
        curd_sub = order.subscriptions.get(product=curd)
        assert milk_sub.total_quantity == 45
        assert milk_sub.alt_quantity == 1
        assert curd_sub.weekdays == ['mon', 'wed', 'fri']
        assert curd_sub.alt_quantity is None
        assert order.total_amount == milk_sub.amount + curd_sub.amount

    def test_wallet_failure_rolls_back(self, funded_member, milk_selection, start_date, today):
        """Balance read higher than the locked balance: nothing is persisted."""
        with patch(
            'apps.subscriptions.services.checkout.get_wallet_balance',
            return_value=Decimal('5000.00'),
        ):
            with pytest.raises(InsufficientWalletBalanceError):
                create_subscription_order(
                    member=funded_member,
                    selections=[{**milk_selection, 'quantity': 3}],
                    period_days=30,
                    start_date=start_date,
                    delivery_address_id=7,
                    today=today,
                )

        assert SubscriptionOrder.objects.count() == 0
        assert Subscription.objects.count() == 0
        assert DeliveryScheduleEntry.objects.count() == 0
        assert get_wallet_balance(member=funded_member) == Decimal('1000.00')

    def test_checkout_payload(self, paid_order, milk, milk_500, start_date):
        payload = to_checkout_payload(paid_order)

        assert payload['order_no'] == paid_order.order_no
        assert payload['delivery_address_id'] == 7
        assert payload['wallet_amount'] == '525.00'
        assert payload['subscriptions'] == [{
            'product_id': str(milk.id),
            'variant_id': str(milk_500.id),
            'period': 15,
            'start_date': start_date.isoformat(),
            'delivery_schedule': DeliveryPattern.DAILY,
            'qty': 1,
            'alt_qty': None,
            'weekdays': [],
        }]


# =============================================================================
# Skip Tests
# =============================================================================

@pytest.mark.django_db
class TestSkipDelivery:
    """Tests for skip_delivery()."""

    def test_skip_paid_delivery_refunds_wallet(self, funded_member, future_entry, today):
        result = skip_delivery(entry_id=future_entry.id, member=funded_member, today=today)

        assert result.new_status == DeliveryStatus.SKIPPED
        assert result.refund_amount == Decimal('35.00')
        future_entry.refresh_from_db()
        assert future_entry.status == DeliveryStatus.SKIPPED
        assert future_entry.skip_source == SkipSource.CUSTOMER
        assert future_entry.refund_amount == Decimal('35.00')
        assert get_wallet_balance(member=funded_member) == Decimal('510.00')

        refund = WalletTransaction.objects.get(reason=TransactionReason.SKIP_REFUND)
        assert refund.reference == f"SKIP-{future_entry.id}"

    def test_skip_unpaid_delivery_has_no_refund(self, member, unpaid_order, today):
        entry = unpaid_order.subscriptions.get().delivery_entries.first()

        result = skip_delivery(entry_id=entry.id, member=member, today=today)

        assert result.new_status == DeliveryStatus.SKIPPED
        assert result.refund_amount is None
        assert not WalletTransaction.objects.filter(reason=TransactionReason.SKIP_REFUND).exists()

    def test_cannot_skip_today(self, member, paid_subscription, make_entry, today):
        entry = make_entry(paid_subscription, today)

        with pytest.raises(DeliveryTransitionError):
            skip_delivery(entry_id=entry.id, member=member, today=today)

        entry.refresh_from_db()
        assert entry.status == DeliveryStatus.PENDING

    def test_cannot_skip_twice(self, member, future_entry, today):
        skip_delivery(entry_id=future_entry.id, member=member, today=today)

        with pytest.raises(DeliveryTransitionError):
            skip_delivery(entry_id=future_entry.id, member=member, today=today)

        assert WalletTransaction.objects.filter(reason=TransactionReason.SKIP_REFUND).count() == 1

    def test_other_member_gets_not_found(self, other_member, future_entry, today):
        with pytest.raises(DeliveryEntryNotFoundError):
            skip_delivery(entry_id=future_entry.id, member=other_member, today=today)

        future_entry.refresh_from_db()
        assert future_entry.status == DeliveryStatus.PENDING

    def test_unknown_entry(self, member, today):
        with pytest.raises(DeliveryEntryNotFoundError):
            skip_delivery(entry_id=uuid4(), member=member, today=today)


# =============================================================================
# Staff Update Tests
# =============================================================================

@pytest.mark.django_db
class TestUpdateDeliveryStatus:
    """Tests for update_delivery_status()."""

    def test_mark_delivered_with_channel(self, future_entry):
        entry = update_delivery_status(
            entry_id=future_entry.id,
            status=DeliveryStatus.DELIVERED,
            fulfillment_channel=FulfillmentChannel.INDRAAI,
        )

        assert entry.status == DeliveryStatus.DELIVERED
        assert entry.fulfillment_channel == FulfillmentChannel.INDRAAI

    def test_delivered_defaults_to_standard_channel(self, future_entry):
        entry = update_delivery_status(entry_id=future_entry.id, status=DeliveryStatus.DELIVERED)

        assert entry.fulfillment_channel == FulfillmentChannel.STANDARD

    def test_admin_skip_has_no_refund(self, funded_member, future_entry):
        entry = update_delivery_status(entry_id=future_entry.id, status=DeliveryStatus.SKIPPED)

        assert entry.skip_source == SkipSource.ADMIN
        assert entry.refund_amount is None
        assert get_wallet_balance(member=funded_member) == Decimal('475.00')

    def test_not_delivered_with_notes(self, future_entry):
        entry = update_delivery_status(
            entry_id=future_entry.id,
            status=DeliveryStatus.NOT_DELIVERED,
            notes='Gate locked',
        )

        assert entry.status == DeliveryStatus.NOT_DELIVERED
        assert entry.notes == 'Gate locked'

    def test_terminal_entry_cannot_change(self, future_entry):
        update_delivery_status(entry_id=future_entry.id, status=DeliveryStatus.DELIVERED)

        with pytest.raises(DeliveryTransitionError):
            update_delivery_status(entry_id=future_entry.id, status=DeliveryStatus.NOT_DELIVERED)

    def test_pending_is_not_a_target(self, future_entry):
        with pytest.raises(DeliveryTransitionError):
            update_delivery_status(entry_id=future_entry.id, status=DeliveryStatus.PENDING)

    def test_unknown_entry(self, db):
        with pytest.raises(DeliveryEntryNotFoundError):
            update_delivery_status(entry_id=uuid4(), status=DeliveryStatus.DELIVERED)


# =============================================================================
# Cancellation Tests
# =============================================================================

@pytest.mark.django_db
class TestCancellation:
    """Tests for cancel_subscription() and cancel_order()."""

    def test_cancel_subscription_cancels_future_entries(self, member, paid_subscription, make_entry, today):
        todays_entry = make_entry(paid_subscription, today)

        subscription, cancelled = cancel_subscription(
            subscription_id=paid_subscription.id, member=member, today=today
        )

        assert cancelled == 15
        assert subscription.status == SubscriptionStatus.CANCELLED
        todays_entry.refresh_from_db()
        assert todays_entry.status == DeliveryStatus.PENDING
        assert paid_subscription.delivery_entries.filter(status=DeliveryStatus.CANCELLED).count() == 15

    def test_cancel_keeps_terminal_entries(self, member, paid_subscription, future_entry, today):
        update_delivery_status(entry_id=future_entry.id, status=DeliveryStatus.NOT_DELIVERED)

        _, cancelled = cancel_subscription(subscription_id=paid_subscription.id, member=member, today=today)

        assert cancelled == 14
        future_entry.refresh_from_db()
        assert future_entry.status == DeliveryStatus.NOT_DELIVERED

    def test_cancel_twice(self, member, paid_subscription, today):
        cancel_subscription(subscription_id=paid_subscription.id, member=member, today=today)

        with pytest.raises(SubscriptionAlreadyCancelledError):
            cancel_subscription(subscription_id=paid_subscription.id, member=member, today=today)

    def test_cancel_other_members_subscription(self, other_member, paid_subscription, today):
        with pytest.raises(SubscriptionNotFoundError):
            cancel_subscription(subscription_id=paid_subscription.id, member=other_member, today=today)

    def test_cancel_unpaid_order_cancels_payment(self, member, unpaid_order, today):
        order, cancelled = cancel_order(order_id=unpaid_order.id, member=member, today=today)

        assert cancelled == 15
        assert order.payment_status == PaymentStatus.CANCELLED
        assert order.subscriptions.get().payment_status == PaymentStatus.CANCELLED

    def test_cancel_paid_order_keeps_payment(self, member, paid_order, today):
        order, _ = cancel_order(order_id=paid_order.id, member=member, today=today)

        assert order.payment_status == PaymentStatus.PAID
        assert order.subscriptions.get().status == SubscriptionStatus.CANCELLED


# =============================================================================
# Payment Tests
# =============================================================================

@pytest.mark.django_db
class TestRecordPayment:
    """Tests for record_payment()."""

    def test_record_external_payment(self, unpaid_order):
        order = record_payment(
            order_id=unpaid_order.id,
            payment_mode=PaymentMode.UPI,
            payment_reference='UPI-123',
        )

        assert order.payment_status == PaymentStatus.PAID
        assert order.payment_mode == PaymentMode.UPI
        assert order.payment_reference == 'UPI-123'
        assert order.paid_at is not None
        assert order.subscriptions.get().payment_status == PaymentStatus.PAID

    def test_record_payment_twice(self, unpaid_order):
        record_payment(order_id=unpaid_order.id, payment_mode=PaymentMode.CASH)

        with pytest.raises(PaymentAlreadyRecordedError):
            record_payment(order_id=unpaid_order.id, payment_mode=PaymentMode.CASH)

    def test_skips_before_payment_are_credited(self, member, unpaid_order, today):
        """A delivery skipped while unpaid is refunded once the order is paid."""
        entry = unpaid_order.subscriptions.get().delivery_entries.order_by('delivery_date').first()
        skip_delivery(entry_id=entry.id, member=member, today=today)

        record_payment(order_id=unpaid_order.id, payment_mode=PaymentMode.CASH)

        entry.refresh_from_db()
        assert entry.refund_amount == Decimal('35.00')
        assert get_wallet_balance(member=member) == Decimal('35.00')
        refund = WalletTransaction.objects.get(reason=TransactionReason.SKIP_REFUND)
        assert refund.reference == f"SKIP-{entry.id}"

    def test_admin_skips_are_not_credited(self, member, unpaid_order):
        entry = unpaid_order.subscriptions.get().delivery_entries.order_by('delivery_date').first()
        update_delivery_status(entry_id=entry.id, status=DeliveryStatus.SKIPPED)

        record_payment(order_id=unpaid_order.id, payment_mode=PaymentMode.CASH)

        entry.refresh_from_db()
        assert entry.refund_amount is None
        assert get_wallet_balance(member=member) == Decimal('0.00')

    def test_cancelled_order_cannot_be_paid(self, member, unpaid_order, today):
        cancel_order(order_id=unpaid_order.id, member=member, today=today)

        with pytest.raises(InvalidSubscriptionRequestError):
            record_payment(order_id=unpaid_order.id, payment_mode=PaymentMode.CASH)


# =============================================================================
# Delivery Sheet Tests
# =============================================================================

@pytest.mark.django_db
class TestDeliverySheet:
    """Tests for delivery_sheet()."""

    def test_defaults_to_paid_subscriptions(self, paid_order, unpaid_order, start_date):
        entries = list(delivery_sheet(delivery_date=start_date))

        assert len(entries) == 1
        assert entries[0].subscription.order_id == paid_order.id

    def test_all_payment_statuses(self, paid_order, unpaid_order, start_date):
        assert delivery_sheet(delivery_date=start_date, payment_status=None).count() == 2

    def test_filter_by_status(self, paid_order, future_entry, start_date):
        update_delivery_status(entry_id=future_entry.id, status=DeliveryStatus.DELIVERED)

        assert delivery_sheet(status=DeliveryStatus.DELIVERED).count() == 1
        assert delivery_sheet(status=DeliveryStatus.PENDING).count() == 14

    def test_filter_by_member(self, paid_order, other_member):
        assert delivery_sheet(member=other_member).count() == 0

    def test_filter_by_date_range(self, paid_order, start_date):
        entries = delivery_sheet(date_from=start_date + timedelta(days=2), date_to=start_date + timedelta(days=5))

        assert [e.delivery_date for e in entries] == [start_date + timedelta(days=n) for n in range(2, 6)]

    def test_open_ended_range(self, paid_order, start_date):
        assert delivery_sheet(date_from=start_date + timedelta(days=10)).count() == 5
        assert delivery_sheet(date_to=start_date).count() == 1

    def test_filter_by_subscription(self, paid_order, unpaid_order):
        subscription = unpaid_order.subscriptions.get()

        entries = delivery_sheet(payment_status=None, subscription_id=subscription.id)

        assert entries.count() == 15
        assert {e.subscription_id for e in entries} == {subscription.id}
