"""
Delivery schedule enumeration and pattern policy.

Pure functions: given a start date, a period and a delivery pattern, produce
the ordered list of (date, quantity) deliveries inside the period window
[start_date, start_date + period_days). No database access here.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from django.conf import settings

from ..exceptions import InvalidSubscriptionRequestError, PatternNotAllowedError
from ..models import DeliveryPattern


# Index matches date.weekday(): Monday == 0
WEEKDAY_CODES = ('mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun')
WEEKDAY_LABELS = {code: code.capitalize() for code in WEEKDAY_CODES}

# Integer weekdays from clients count from Sunday == 0
_SUNDAY_FIRST = ('sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat')
_FULL_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')

SELECT_DAYS_MIN_WEEKDAYS = 3

# A pattern is offered only when period_days is strictly greater than its threshold
PATTERN_MIN_PERIOD_EXCLUSIVE = {
    DeliveryPattern.DAILY: 0,
    DeliveryPattern.ALTERNATE_DAYS: 7,
    DeliveryPattern.DAY1_DAY2: 15,
    DeliveryPattern.SELECT_DAYS: 15,
}

PERIOD_LABELS = {
    3: '3 Days (Trial Pack)',
    15: '15 Days (Mid Saver Pack)',
    30: '30 Days (Super Saver Pack)',
}


class QuantitySlot(str, Enum):
    """Which of the two configured quantities a delivery carries."""
    PRIMARY = 'primary'
    SECONDARY = 'secondary'


@dataclass(frozen=True)
class ScheduledDelivery:
    delivery_date: date
    quantity: int
    slot: QuantitySlot = QuantitySlot.PRIMARY


# ---------------------------------------------------------------------------
# Weekday handling
# ---------------------------------------------------------------------------

def _weekday_code(value) -> str:
    if isinstance(value, bool):
        raise InvalidSubscriptionRequestError(f"Invalid weekday: {value!r}")

    if isinstance(value, str):
        text = value.strip().lower()
        if text.isdigit():
            value = int(text)
        elif text in WEEKDAY_CODES:
            return text
        elif text in _FULL_NAMES:
            return text[:3]
        else:
            raise InvalidSubscriptionRequestError(f"Invalid weekday: {value!r}")

    if isinstance(value, int) and 0 <= value <= 6:
        return _SUNDAY_FIRST[value]

    raise InvalidSubscriptionRequestError(f"Invalid weekday: {value!r}")


def normalize_weekdays(values: Optional[Iterable]) -> Tuple[str, ...]:
    """
    Normalize a weekday selection to unique codes ordered Monday..Sunday.

    Accepts codes ('mon'), full names ('Monday') and integers counting from
    Sunday == 0. Duplicates collapse.

    Raises:
        InvalidSubscriptionRequestError: For any unrecognised weekday
    """
    if not values:
        return ()
    codes = {_weekday_code(value) for value in values}
    return tuple(code for code in WEEKDAY_CODES if code in codes)


def format_weekdays(weekdays: Sequence[str]) -> str:
    return ', '.join(WEEKDAY_LABELS[code] for code in weekdays)


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------

def delivery_window(start_date: date, period_days: int) -> Tuple[date, date]:
    """Return (start_date, expiry_date); expiry is the last day inside the window."""
    return start_date, start_date + timedelta(days=period_days - 1)


def _daily(start_date, period_days, weekdays) -> Iterator[Tuple[date, QuantitySlot]]:
    for offset in range(period_days):
        yield start_date + timedelta(days=offset), QuantitySlot.PRIMARY


def _alternate_days(start_date, period_days, weekdays) -> Iterator[Tuple[date, QuantitySlot]]:
    for offset in range(0, period_days, 2):
        yield start_date + timedelta(days=offset), QuantitySlot.PRIMARY


def _day1_day2(start_date, period_days, weekdays) -> Iterator[Tuple[date, QuantitySlot]]:
    for offset in range(period_days):
        slot = QuantitySlot.PRIMARY if offset % 2 == 0 else QuantitySlot.SECONDARY
        yield start_date + timedelta(days=offset), slot


def _select_days(start_date, period_days, weekdays) -> Iterator[Tuple[date, QuantitySlot]]:
    selected = set(weekdays)
    for offset in range(period_days):
        day = start_date + timedelta(days=offset)
        if WEEKDAY_CODES[day.weekday()] in selected:
            yield day, QuantitySlot.PRIMARY


_DATE_RULES = {
    DeliveryPattern.DAILY: _daily,
    DeliveryPattern.ALTERNATE_DAYS: _alternate_days,
    DeliveryPattern.DAY1_DAY2: _day1_day2,
    DeliveryPattern.SELECT_DAYS: _select_days,
}


def _to_pattern(pattern) -> DeliveryPattern:
    try:
        return DeliveryPattern(pattern)
    except ValueError:
        raise InvalidSubscriptionRequestError(f"Unknown delivery pattern: {pattern!r}")


def enumerate_deliveries(
    start_date: date,
    period_days: int,
    pattern,
    quantity: int = 1,
    alt_quantity: Optional[int] = None,
    weekdays: Optional[Iterable] = None,
) -> Tuple[ScheduledDelivery, ...]:
    """
    Enumerate the deliveries of one selection over its period.

    Dates are strictly increasing and all fall within the period window.
    DAY1_DAY2 alternates quantity and alt_quantity starting with quantity on
    the start date. SELECT_DAYS with no weekdays yields no deliveries.

    Args:
        start_date: First day of the period
        period_days: Length of the period in days
        pattern: DeliveryPattern value
        quantity: Quantity per delivery (day-1 quantity for DAY1_DAY2)
        alt_quantity: Day-2 quantity, required for DAY1_DAY2
        weekdays: Weekday selection for SELECT_DAYS

    Returns:
        Tuple of ScheduledDelivery in date order

    Raises:
        InvalidSubscriptionRequestError: For a missing start date or an
            incomplete request
    """
    if start_date is None:
        raise InvalidSubscriptionRequestError('Start date is required.')
    if period_days is None or period_days < 1:
        raise InvalidSubscriptionRequestError('Period must be at least one day.')

    pattern = _to_pattern(pattern)
    if pattern == DeliveryPattern.DAY1_DAY2 and alt_quantity is None:
        raise InvalidSubscriptionRequestError('Day1-Day2 deliveries need a second-day quantity.')

    rule = _DATE_RULES[pattern]
    quantities = {QuantitySlot.PRIMARY: quantity, QuantitySlot.SECONDARY: alt_quantity}

    return tuple(
        ScheduledDelivery(delivery_date=day, quantity=quantities[slot], slot=slot)
        for day, slot in rule(start_date, period_days, normalize_weekdays(weekdays))
    )


# ---------------------------------------------------------------------------
# Pattern policy and request validation
# ---------------------------------------------------------------------------

def is_pattern_allowed(pattern, period_days: int) -> bool:
    return period_days > PATTERN_MIN_PERIOD_EXCLUSIVE[_to_pattern(pattern)]


def allowed_patterns(period_days: int):
    return [pattern for pattern in DeliveryPattern if is_pattern_allowed(pattern, period_days)]


def ensure_pattern_allowed(pattern, period_days: int) -> None:
    pattern = _to_pattern(pattern)
    if not is_pattern_allowed(pattern, period_days):
        raise PatternNotAllowedError(
            f"{pattern.label} delivery is not available for a {period_days}-day period."
        )


def downgrade_pattern_for_period(pattern, period_days: int) -> DeliveryPattern:
    """Fall back to DAILY when the period no longer supports the pattern."""
    pattern = _to_pattern(pattern)
    if is_pattern_allowed(pattern, period_days):
        return pattern
    return DeliveryPattern.DAILY


def ensure_period_offered(period_days: int) -> None:
    if period_days not in settings.SUBSCRIPTION_PERIODS:
        offered = ', '.join(str(p) for p in settings.SUBSCRIPTION_PERIODS)
        raise InvalidSubscriptionRequestError(f"Period must be one of: {offered} days.")


def validate_start_date(start_date: Optional[date], today: date) -> date:
    """Start date must exist and be at least the configured lead time after today."""
    if start_date is None:
        raise InvalidSubscriptionRequestError('Start date is required.')

    earliest = today + timedelta(days=settings.SUBSCRIPTION_MIN_LEAD_DAYS)
    if start_date < earliest:
        raise InvalidSubscriptionRequestError(
            f"Start date must be on or after {earliest.isoformat()}."
        )
    return start_date


def validate_selection(
    pattern,
    period_days: int,
    quantity: Optional[int],
    alt_quantity: Optional[int] = None,
    weekdays: Optional[Iterable] = None,
) -> Tuple[str, ...]:
    """
    Check one selection before any schedule is computed.

    Returns:
        The normalized weekday codes (empty unless SELECT_DAYS)

    Raises:
        InvalidSubscriptionRequestError: Bad quantity or weekday selection
        PatternNotAllowedError: Pattern not offered for the period
    """
    pattern = _to_pattern(pattern)

    if quantity is None or quantity < 1:
        raise InvalidSubscriptionRequestError('Quantity must be at least 1.')

    ensure_pattern_allowed(pattern, period_days)

    if pattern == DeliveryPattern.DAY1_DAY2:
        if alt_quantity is None or alt_quantity < 1:
            raise InvalidSubscriptionRequestError('Day1-Day2 deliveries need a second-day quantity of at least 1.')

    if pattern != DeliveryPattern.SELECT_DAYS:
        return ()

    codes = normalize_weekdays(weekdays)
    if len(codes) < SELECT_DAYS_MIN_WEEKDAYS:
        raise InvalidSubscriptionRequestError(
            f"Select at least {SELECT_DAYS_MIN_WEEKDAYS} weekdays."
        )
    return codes
