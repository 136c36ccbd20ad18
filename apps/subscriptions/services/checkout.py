"""
Subscription quoting, checkout, cancellation and payment recording.

Selections arrive as mappings with product_id, variant_id, delivery_pattern,
quantity, alt_quantity and weekdays. Every selection in one request shares
the period and the start date.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.catalog.exceptions import (
    ProductNotFoundError,
    VariantNotFoundError,
    VariantUnavailableError,
)
from apps.catalog.models import Product, ProductVariant
from apps.wallet.services import debit_wallet, get_wallet_balance, refund_skipped_delivery

from ..exceptions import (
    InvalidSubscriptionRequestError,
    PaymentAlreadyRecordedError,
    SubscriptionAlreadyCancelledError,
    SubscriptionNotFoundError,
    SubscriptionOrderNotFoundError,
)
from ..models import (
    DeliveryPattern,
    DeliveryScheduleEntry,
    DeliveryStatus,
    PaymentMode,
    PaymentStatus,
    SkipSource,
    Subscription,
    SubscriptionOrder,
    SubscriptionStatus,
)
from .pricing import PriceTable
from .scheduling import ensure_period_offered, validate_selection, validate_start_date
from .totals import Quote, SelectionRequest, build_quote

logger = logging.getLogger(__name__)


def _load_sellable(product_id, variant_id) -> Tuple[Product, Optional[ProductVariant]]:
    try:
        product = Product.objects.get(id=product_id, is_active=True)
    except Product.DoesNotExist:
        raise ProductNotFoundError()

    if variant_id is None:
        return product, None

    try:
        variant = ProductVariant.objects.get(id=variant_id, product=product)
    except ProductVariant.DoesNotExist:
        raise VariantNotFoundError()

    if not variant.is_available:
        raise VariantUnavailableError(f"{variant} is not available.")

    return product, variant


def prepare_selections(selections: Sequence[Mapping], period_days: int) -> List[SelectionRequest]:
    """
    Validate raw selections and attach each one's price table.

    Raises:
        InvalidSubscriptionRequestError: Empty or invalid selection
        PatternNotAllowedError: Pattern not offered for the period
        ProductNotFoundError, VariantNotFoundError, VariantUnavailableError
    """
    if not selections:
        raise InvalidSubscriptionRequestError('Select at least one product.')

    prepared = []
    for item in selections:
        pattern = item.get('delivery_pattern') or DeliveryPattern.DAILY
        quantity = item.get('quantity')
        alt_quantity = item.get('alt_quantity')
        weekdays = validate_selection(
            pattern,
            period_days,
            quantity,
            alt_quantity=alt_quantity,
            weekdays=item.get('weekdays'),
        )
        product, variant = _load_sellable(item.get('product_id'), item.get('variant_id'))

        prepared.append(SelectionRequest(
            price_table=PriceTable.from_source(variant or product),
            pattern=DeliveryPattern(pattern),
            quantity=quantity,
            alt_quantity=alt_quantity if pattern == DeliveryPattern.DAY1_DAY2 else None,
            weekdays=weekdays,
            product_id=product.id,
            variant_id=variant.id if variant else None,
        ))
    return prepared


def quote_subscription(
    *,
    member: User,
    selections: Sequence[Mapping],
    period_days: int,
    start_date: Optional[date],
    use_wallet: bool = True,
    today: Optional[date] = None
) -> Quote:
    """
    Price a subscription request without persisting anything.

    Validation happens before any schedule is computed. The wallet balance
    is only read when the member opted to use it.
    """
    today = today or timezone.localdate()

    validate_start_date(start_date, today)
    ensure_period_offered(period_days)
    prepared = prepare_selections(selections, period_days)

    balance = get_wallet_balance(member=member) if use_wallet else Decimal('0.00')

    return build_quote(
        prepared,
        period_days,
        start_date,
        available_balance=balance,
        use_wallet=use_wallet,
        currency=settings.SUBSCRIPTION_CURRENCY,
    )


@transaction.atomic
def create_subscription_order(
    *,
    member: User,
    selections: Sequence[Mapping],
    period_days: int,
    start_date: Optional[date],
    delivery_address_id: int,
    use_wallet: bool = True,
    today: Optional[date] = None
) -> SubscriptionOrder:
    """
    Check out a subscription request.

    Creates the order, one Subscription per selection and every delivery
    schedule entry, then debits the wallet portion. A wallet failure rolls
    the whole checkout back. The order is PAID when the wallet covers the
    total, otherwise it waits in PENDING for an external payment.

    Raises:
        InvalidSubscriptionRequestError: Invalid request or a selection with
            no deliveries in the period
        InsufficientWalletBalanceError: Balance changed since it was read
    """
    quote = quote_subscription(
        member=member,
        selections=selections,
        period_days=period_days,
        start_date=start_date,
        use_wallet=use_wallet,
        today=today,
    )

    if any(selection.totals.delivery_count == 0 for selection in quote.selections):
        raise InvalidSubscriptionRequestError('No deliveries fall within the selected period.')

    fully_paid = quote.wallet.amount_payable == 0
    payment_status = PaymentStatus.PAID if fully_paid else PaymentStatus.PENDING

    order = SubscriptionOrder.objects.create(
        member=member,
        delivery_address_id=delivery_address_id,
        period_days=period_days,
        start_date=quote.start_date,
        total_amount=quote.totals.total_price,
        wallet_amount=quote.wallet.wallet_deduction,
        payable_amount=quote.wallet.amount_payable,
        currency=quote.currency,
        payment_status=payment_status,
        payment_mode=PaymentMode.WALLET if fully_paid and quote.wallet.wallet_deduction > 0 else '',
        paid_at=timezone.now() if fully_paid else None,
    )

    for selection_quote in quote.selections:
        selection = selection_quote.selection
        subscription = Subscription.objects.create(
            order=order,
            member=member,
            product_id=selection.product_id,
            variant_id=selection.variant_id,
            period_days=period_days,
            start_date=quote.start_date,
            expiry_date=quote.expiry_date,
            delivery_pattern=selection.pattern,
            weekdays=list(selection.weekdays),
            quantity=selection.quantity,
            alt_quantity=selection.alt_quantity,
            unit_price=selection_quote.unit_price,
            mrp=selection_quote.reference_price,
            delivery_count=selection_quote.totals.delivery_count,
            total_quantity=selection_quote.totals.total_quantity,
            amount=selection_quote.totals.total_price,
            savings=selection_quote.totals.savings,
            payment_status=payment_status,
        )
        DeliveryScheduleEntry.objects.bulk_create([
            DeliveryScheduleEntry(
                subscription=subscription,
                delivery_date=delivery.delivery_date,
                quantity=delivery.quantity,
            )
            for delivery in selection_quote.deliveries
        ])

    if quote.wallet.wallet_deduction > 0:
        debit_wallet(
            member=member,
            amount=quote.wallet.wallet_deduction,
            reference=order.order_no,
            note=f"Subscription order {order.order_no}",
        )

    logger.info(
        "Subscription order created",
        extra={'extra_data': {
            'order_no': order.order_no,
            'member_id': str(member.id),
            'period_days': period_days,
            'subscriptions': len(quote.selections),
            'total_amount': order.total_amount,
            'wallet_amount': order.wallet_amount,
            'payment_status': order.payment_status,
        }},
    )
    return order


def to_checkout_payload(order: SubscriptionOrder) -> dict:
    """Checkout confirmation payload sent to the storefront."""
    return {
        'order_no': order.order_no,
        'subscriptions': [
            {
                'product_id': str(subscription.product_id),
                'variant_id': str(subscription.variant_id) if subscription.variant_id else None,
                'period': subscription.period_days,
                'start_date': subscription.start_date.isoformat(),
                'delivery_schedule': subscription.delivery_pattern,
                'qty': subscription.quantity,
                'alt_qty': subscription.alt_quantity,
                'weekdays': list(subscription.weekdays),
            }
            for subscription in order.subscriptions.all()
        ],
        'delivery_address_id': order.delivery_address_id,
        'wallet_amount': str(order.wallet_amount),
    }


def _cancel_locked_subscription(subscription: Subscription, today: date) -> int:
    cancelled = subscription.delivery_entries.filter(
        status=DeliveryStatus.PENDING,
        delivery_date__gt=today,
    ).update(status=DeliveryStatus.CANCELLED, updated_at=timezone.now())

    subscription.status = SubscriptionStatus.CANCELLED
    subscription.save(update_fields=['status', 'updated_at'])
    return cancelled


@transaction.atomic
def cancel_subscription(
    *,
    subscription_id: UUID,
    member: User,
    today: Optional[date] = None
) -> Tuple[Subscription, int]:
    """
    Cancel a subscription: future pending deliveries become CANCELLED.

    Deliveries dated today or earlier keep their status.

    Returns:
        (subscription, number of cancelled delivery entries)
    """
    today = today or timezone.localdate()

    try:
        subscription = Subscription.objects.select_for_update().get(id=subscription_id, member=member)
    except Subscription.DoesNotExist:
        raise SubscriptionNotFoundError()

    if subscription.status == SubscriptionStatus.CANCELLED:
        raise SubscriptionAlreadyCancelledError()

    cancelled = _cancel_locked_subscription(subscription, today)
    logger.info(
        "Subscription cancelled",
        extra={'extra_data': {'subscription_id': str(subscription.id), 'cancelled_deliveries': cancelled}},
    )
    return subscription, cancelled


@transaction.atomic
def cancel_order(
    *,
    order_id: UUID,
    member: User,
    today: Optional[date] = None
) -> Tuple[SubscriptionOrder, int]:
    """
    Cancel every active subscription of an order.

    An unpaid order is also marked CANCELLED for payment.

    Returns:
        (order, total number of cancelled delivery entries)
    """
    today = today or timezone.localdate()

    try:
        order = SubscriptionOrder.objects.select_for_update().get(id=order_id, member=member)
    except SubscriptionOrder.DoesNotExist:
        raise SubscriptionOrderNotFoundError()

    active = list(
        order.subscriptions.select_for_update().filter(status=SubscriptionStatus.ACTIVE)
    )
    if not active:
        raise SubscriptionAlreadyCancelledError('All subscriptions of this order are already cancelled.')

    cancelled = sum(_cancel_locked_subscription(subscription, today) for subscription in active)

    if order.payment_status == PaymentStatus.PENDING:
        order.payment_status = PaymentStatus.CANCELLED
        order.save(update_fields=['payment_status', 'updated_at'])
        order.subscriptions.update(payment_status=PaymentStatus.CANCELLED)

    logger.info(
        "Subscription order cancelled",
        extra={'extra_data': {'order_no': order.order_no, 'cancelled_deliveries': cancelled}},
    )
    return order, cancelled


@transaction.atomic
def record_payment(
    *,
    order_id: UUID,
    payment_mode: str,
    payment_reference: str = ''
) -> SubscriptionOrder:
    """
    Mark an order and its subscriptions PAID (staff, external payment).

    Deliveries the member skipped while the order was unpaid are credited to
    the wallet once the payment is in, as a pre-paid skip would have been.

    Raises:
        SubscriptionOrderNotFoundError: Order doesn't exist
        PaymentAlreadyRecordedError: Order is already PAID
        InvalidSubscriptionRequestError: Order was cancelled
    """
    try:
        order = SubscriptionOrder.objects.select_for_update().get(id=order_id)
    except SubscriptionOrder.DoesNotExist:
        raise SubscriptionOrderNotFoundError()

    if order.payment_status == PaymentStatus.PAID:
        raise PaymentAlreadyRecordedError()
    if order.payment_status == PaymentStatus.CANCELLED:
        raise InvalidSubscriptionRequestError('Cannot record a payment for a cancelled order.')

    order.payment_status = PaymentStatus.PAID
    order.payment_mode = payment_mode
    order.payment_reference = payment_reference
    order.paid_at = timezone.now()
    order.save(update_fields=['payment_status', 'payment_mode', 'payment_reference', 'paid_at', 'updated_at'])

    order.subscriptions.update(payment_status=PaymentStatus.PAID, updated_at=timezone.now())

    refunded = _refund_unpaid_skips(order)

    logger.info(
        "Subscription payment recorded",
        extra={'extra_data': {
            'order_no': order.order_no,
            'payment_mode': payment_mode,
            'skip_refunds': refunded,
        }},
    )
    return order


def _refund_unpaid_skips(order: SubscriptionOrder) -> Decimal:
    """Credit customer skips made before the order was paid; returns the total credited."""
    entries = DeliveryScheduleEntry.objects.select_for_update().select_related('subscription').filter(
        subscription__order=order,
        status=DeliveryStatus.SKIPPED,
        skip_source=SkipSource.CUSTOMER,
        refund_amount__isnull=True,
    )

    total = Decimal('0.00')
    for entry in entries:
        entry.refund_amount = refund_skipped_delivery(
            member=order.member,
            quantity=entry.quantity,
            unit_price=entry.subscription.unit_price,
            reference=f"SKIP-{entry.id}",
        )
        entry.save(update_fields=['refund_amount', 'updated_at'])
        total += entry.refund_amount
    return total
