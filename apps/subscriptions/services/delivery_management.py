"""
Delivery entry service.

Member skips and staff status updates. Both transitions are written as a
conditional UPDATE that only matches a PENDING row, so of two concurrent
requests for the same entry at most one succeeds; the other sees the
conflict.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.wallet.services import refund_skipped_delivery

from ..exceptions import DeliveryEntryNotFoundError, DeliveryTransitionError
from ..models import (
    DeliveryScheduleEntry,
    DeliveryStatus,
    FulfillmentChannel,
    PaymentStatus,
    SkipSource,
)
from .lifecycle import ensure_can_skip, ensure_can_transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkipResult:
    entry: DeliveryScheduleEntry
    new_status: str
    refund_amount: Optional[Decimal] = None


def _member_entries(member: User) -> QuerySet:
    return DeliveryScheduleEntry.objects.filter(subscription__member=member)


@transaction.atomic
def skip_delivery(
    *,
    entry_id: UUID,
    member: User,
    today: Optional[date] = None
) -> SkipResult:
    """
    Skip one upcoming delivery of the member's subscription.

    Allowed only while the entry is PENDING and dated strictly after today.
    When the subscription is pre-paid, the delivery's value is credited to
    the member's wallet.

    Raises:
        DeliveryEntryNotFoundError: Entry doesn't exist or isn't the member's
        DeliveryTransitionError: Entry is not pending or not in the future
    """
    today = today or timezone.localdate()

    updated = _member_entries(member).filter(
        id=entry_id,
        status=DeliveryStatus.PENDING,
        delivery_date__gt=today,
    ).update(
        status=DeliveryStatus.SKIPPED,
        skip_source=SkipSource.CUSTOMER,
        updated_at=timezone.now(),
    )

    try:
        entry = _member_entries(member).select_related('subscription').get(id=entry_id)
    except DeliveryScheduleEntry.DoesNotExist:
        raise DeliveryEntryNotFoundError()

    if not updated:
        ensure_can_skip(entry.status, entry.delivery_date, today)
        # Row changed between the update and the read
        raise DeliveryTransitionError()

    subscription = entry.subscription
    refund_amount = None
    if subscription.payment_status == PaymentStatus.PAID:
        refund_amount = refund_skipped_delivery(
            member=member,
            quantity=entry.quantity,
            unit_price=subscription.unit_price,
            reference=f"SKIP-{entry.id}",
        )
        entry.refund_amount = refund_amount
        entry.save(update_fields=['refund_amount', 'updated_at'])

    logger.info(
        "Delivery skipped",
        extra={'extra_data': {
            'entry_id': str(entry.id),
            'subscription_id': str(subscription.id),
            'delivery_date': entry.delivery_date,
            'refund_amount': refund_amount,
        }},
    )
    return SkipResult(entry=entry, new_status=entry.status, refund_amount=refund_amount)


@transaction.atomic
def update_delivery_status(
    *,
    entry_id: UUID,
    status: str,
    fulfillment_channel: str = '',
    notes: str = ''
) -> DeliveryScheduleEntry:
    """
    Staff update: move a PENDING entry to a terminal status.

    DELIVERED records the fulfillment channel (STANDARD when not given);
    SKIPPED is recorded as an admin skip and carries no refund.

    Raises:
        DeliveryEntryNotFoundError: Entry doesn't exist
        DeliveryTransitionError: Target not terminal or entry not PENDING
    """
    ensure_can_transition(DeliveryStatus.PENDING, status)

    changes = {'status': status, 'notes': notes, 'updated_at': timezone.now()}
    if status == DeliveryStatus.DELIVERED:
        changes['fulfillment_channel'] = fulfillment_channel or FulfillmentChannel.STANDARD
    if status == DeliveryStatus.SKIPPED:
        changes['skip_source'] = SkipSource.ADMIN

    updated = DeliveryScheduleEntry.objects.filter(
        id=entry_id,
        status=DeliveryStatus.PENDING,
    ).update(**changes)

    try:
        entry = DeliveryScheduleEntry.objects.get(id=entry_id)
    except DeliveryScheduleEntry.DoesNotExist:
        raise DeliveryEntryNotFoundError()

    if not updated:
        ensure_can_transition(entry.status, status)
        raise DeliveryTransitionError()

    logger.info(
        "Delivery status updated",
        extra={'extra_data': {'entry_id': str(entry.id), 'status': status, 'channel': entry.fulfillment_channel}},
    )
    return entry


def delivery_sheet(
    *,
    delivery_date: Optional[date] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    status: Optional[str] = None,
    payment_status: Optional[str] = PaymentStatus.PAID,
    member: Optional[User] = None,
    subscription_id: Optional[UUID] = None
) -> QuerySet:
    """
    Delivery entries for dispatch, filtered by date, status and payment.

    date_from and date_to bound the range inclusively. Defaults to PAID
    subscriptions only; pass payment_status=None for all.
    """
    entries = DeliveryScheduleEntry.objects.select_related(
        'subscription',
        'subscription__product',
        'subscription__variant',
        'subscription__member',
        'subscription__order',
    )
    if member is not None:
        entries = entries.filter(subscription__member=member)
    if delivery_date is not None:
        entries = entries.filter(delivery_date=delivery_date)
    if date_from is not None:
        entries = entries.filter(delivery_date__gte=date_from)
    if date_to is not None:
        entries = entries.filter(delivery_date__lte=date_to)
    if subscription_id is not None:
        entries = entries.filter(subscription_id=subscription_id)
    if status:
        entries = entries.filter(status=status)
    if payment_status:
        entries = entries.filter(subscription__payment_status=payment_status)
    return entries.order_by('delivery_date', 'subscription__member__email')
