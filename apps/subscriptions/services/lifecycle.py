"""
Delivery entry state machine.

    PENDING --(date passes, fulfilled)--> DELIVERED
    PENDING --(date passes, missed)-----> NOT_DELIVERED
    PENDING --(subscription cancelled)--> CANCELLED
    PENDING --(skip, date > today)------> SKIPPED

All non-PENDING states are terminal. SCHEDULED is a display-only state for a
PENDING entry dated today and is never stored.
"""
from datetime import date
from typing import Optional

from ..exceptions import DeliveryTransitionError
from ..models import DeliveryStatus, FulfillmentChannel, SkipSource


SCHEDULED = 'SCHEDULED'

TERMINAL_STATUSES = frozenset({
    DeliveryStatus.DELIVERED,
    DeliveryStatus.NOT_DELIVERED,
    DeliveryStatus.CANCELLED,
    DeliveryStatus.SKIPPED,
})

_DELIVERED_LABELS = {
    FulfillmentChannel.INDRAAI: 'DELIVERED (INDRAAI)',
    FulfillmentChannel.AGENT: 'DELIVERED (AGENT)',
}


def is_terminal(status) -> bool:
    return status in TERMINAL_STATUSES


def can_skip(status, delivery_date: date, today: date) -> bool:
    """A delivery can be skipped only while PENDING and strictly in the future."""
    return status == DeliveryStatus.PENDING and delivery_date > today


def ensure_can_skip(status, delivery_date: date, today: date) -> None:
    if status != DeliveryStatus.PENDING:
        raise DeliveryTransitionError(
            f"Only pending deliveries can be skipped (current status: {status})."
        )
    if delivery_date <= today:
        raise DeliveryTransitionError('Deliveries for today or earlier can no longer be skipped.')


def ensure_can_transition(current, target) -> None:
    """Staff updates move a PENDING entry to one terminal status, once."""
    if target not in TERMINAL_STATUSES:
        raise DeliveryTransitionError(f"Cannot move a delivery to {target}.")
    if current != DeliveryStatus.PENDING:
        raise DeliveryTransitionError(
            f"Delivery is already {current} and cannot change to {target}."
        )


def display_status(status, delivery_date: date, today: date) -> str:
    if status == DeliveryStatus.PENDING and delivery_date == today:
        return SCHEDULED
    return str(status)


def status_label(
    status,
    delivery_date: date,
    today: date,
    skip_source: Optional[str] = None,
    fulfillment_channel: Optional[str] = None,
) -> str:
    """Member-facing label for a delivery entry."""
    shown = display_status(status, delivery_date, today)

    if shown == SCHEDULED:
        return 'TODAY'
    if status == DeliveryStatus.SKIPPED:
        return 'SKIPPED BY YOU' if skip_source == SkipSource.CUSTOMER else 'SKIPPED'
    if status == DeliveryStatus.DELIVERED:
        return _DELIVERED_LABELS.get(fulfillment_channel, 'DELIVERED')
    if status == DeliveryStatus.NOT_DELIVERED:
        return 'NOT DELIVERED'
    return shown
