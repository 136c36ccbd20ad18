"""
Order totals, savings, wallet application and delivery descriptions.

Everything here is pure and works on Decimal amounts rounded to 2 places.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Sequence, Tuple

from ..models import DeliveryPattern
from .pricing import PriceTable, resolve_unit_price, savings_reference_price
from .scheduling import (
    PERIOD_LABELS,
    ScheduledDelivery,
    delivery_window,
    enumerate_deliveries,
    format_weekdays,
)


CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class SelectionTotals:
    delivery_count: int = 0
    total_quantity: int = 0
    total_price: Decimal = ZERO
    savings: Decimal = ZERO

    def __add__(self, other):
        if not isinstance(other, SelectionTotals):
            return NotImplemented
        return SelectionTotals(
            delivery_count=self.delivery_count + other.delivery_count,
            total_quantity=self.total_quantity + other.total_quantity,
            total_price=self.total_price + other.total_price,
            savings=self.savings + other.savings,
        )


def compute_totals(deliveries: Sequence[ScheduledDelivery], unit_price, mrp) -> SelectionTotals:
    """
    Totals for one selection.

    total_price = unit_price * total_quantity
    savings = max(0, mrp * total_quantity - total_price)
    """
    total_quantity = sum(delivery.quantity for delivery in deliveries)
    total_price = to_money(Decimal(unit_price) * total_quantity)
    list_total = to_money(Decimal(mrp) * total_quantity)

    return SelectionTotals(
        delivery_count=len(deliveries),
        total_quantity=total_quantity,
        total_price=total_price,
        savings=max(ZERO, list_total - total_price),
    )


def combine_totals(totals: Iterable[SelectionTotals]) -> SelectionTotals:
    return sum(totals, SelectionTotals())


@dataclass(frozen=True)
class WalletApplication:
    wallet_deduction: Decimal
    amount_payable: Decimal


def apply_wallet(total_price, available_balance, use_wallet: bool) -> WalletApplication:
    """Deduct min(balance, total) from the wallet when the member opts in."""
    total = to_money(total_price)
    if not use_wallet:
        return WalletApplication(wallet_deduction=ZERO, amount_payable=total)

    balance = max(ZERO, to_money(available_balance or 0))
    deduction = min(balance, total)
    return WalletApplication(wallet_deduction=deduction, amount_payable=total - deduction)


# ---------------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------------

def _describe_daily(quantity, alt_quantity, weekdays):
    return f"Daily delivery of {quantity} item{'s' if quantity != 1 else ''}"


def _describe_alternate_days(quantity, alt_quantity, weekdays):
    return 'Alternate Day, starting from start date'


def _describe_day1_day2(quantity, alt_quantity, weekdays):
    return f"Day1-Day2: {quantity} & {alt_quantity} Qty"


def _describe_select_days(quantity, alt_quantity, weekdays):
    if not weekdays:
        return 'No days selected'
    return f"On {format_weekdays(weekdays)}"


_DESCRIPTIONS = {
    DeliveryPattern.DAILY: _describe_daily,
    DeliveryPattern.ALTERNATE_DAYS: _describe_alternate_days,
    DeliveryPattern.DAY1_DAY2: _describe_day1_day2,
    DeliveryPattern.SELECT_DAYS: _describe_select_days,
}


def describe_delivery(pattern, quantity: int, alt_quantity: Optional[int] = None, weekdays=()) -> str:
    """Human-readable summary of a selection's delivery pattern."""
    return _DESCRIPTIONS[DeliveryPattern(pattern)](quantity, alt_quantity, tuple(weekdays or ()))


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SelectionRequest:
    """One validated product/variant selection with its price table."""
    price_table: PriceTable
    pattern: str
    quantity: int
    alt_quantity: Optional[int] = None
    weekdays: Tuple[str, ...] = ()
    product_id: Any = None
    variant_id: Any = None


@dataclass(frozen=True)
class SelectionQuote:
    selection: SelectionRequest
    deliveries: Tuple[ScheduledDelivery, ...]
    unit_price: Decimal
    reference_price: Decimal
    totals: SelectionTotals
    description: str


@dataclass(frozen=True)
class Quote:
    period_days: int
    start_date: date
    expiry_date: date
    selections: Tuple[SelectionQuote, ...]
    totals: SelectionTotals
    wallet: WalletApplication
    description: str
    currency: str = 'INR'

    def as_display(self) -> dict:
        return {
            'period_days': self.period_days,
            'period_label': PERIOD_LABELS.get(self.period_days, f"{self.period_days} Days"),
            'start_date': self.start_date,
            'expiry_date': self.expiry_date,
            'delivery_count': self.totals.delivery_count,
            'total_quantity': self.totals.total_quantity,
            'total_price': self.totals.total_price,
            'savings': self.totals.savings,
            'wallet_deduction': self.wallet.wallet_deduction,
            'amount_payable': self.wallet.amount_payable,
            'currency': self.currency,
            'delivery_description': self.description,
            'selections': [
                {
                    'product_id': quote.selection.product_id,
                    'variant_id': quote.selection.variant_id,
                    'delivery_pattern': quote.selection.pattern,
                    'quantity': quote.selection.quantity,
                    'alt_quantity': quote.selection.alt_quantity,
                    'weekdays': list(quote.selection.weekdays),
                    'unit_price': quote.unit_price,
                    'delivery_count': quote.totals.delivery_count,
                    'total_quantity': quote.totals.total_quantity,
                    'total_price': quote.totals.total_price,
                    'savings': quote.totals.savings,
                    'description': quote.description,
                    'delivery_dates': [d.delivery_date for d in quote.deliveries],
                }
                for quote in self.selections
            ],
        }


def quote_selection(selection: SelectionRequest, period_days: int, start_date: date) -> SelectionQuote:
    deliveries = enumerate_deliveries(
        start_date,
        period_days,
        selection.pattern,
        quantity=selection.quantity,
        alt_quantity=selection.alt_quantity,
        weekdays=selection.weekdays,
    )
    unit_price = resolve_unit_price(selection.price_table, period_days)
    reference_price = savings_reference_price(selection.price_table)

    return SelectionQuote(
        selection=selection,
        deliveries=deliveries,
        unit_price=unit_price,
        reference_price=reference_price,
        totals=compute_totals(deliveries, unit_price, reference_price),
        description=describe_delivery(
            selection.pattern, selection.quantity, selection.alt_quantity, selection.weekdays
        ),
    )


def build_quote(
    selections: Sequence[SelectionRequest],
    period_days: int,
    start_date: date,
    available_balance=ZERO,
    use_wallet: bool = False,
    currency: str = 'INR',
) -> Quote:
    """
    Price a set of selections sharing one period and start date.

    Each selection is totalled independently and the results are summed;
    the wallet is applied once to the combined total.
    """
    quotes = tuple(quote_selection(selection, period_days, start_date) for selection in selections)
    totals = combine_totals(quote.totals for quote in quotes)

    if len(quotes) == 1:
        description = quotes[0].description
    else:
        description = f"{len(quotes)} variant{'s' if len(quotes) != 1 else ''}"

    _, expiry_date = delivery_window(start_date, period_days)

    return Quote(
        period_days=period_days,
        start_date=start_date,
        expiry_date=expiry_date,
        selections=quotes,
        totals=totals,
        wallet=apply_wallet(totals.total_price, available_balance, use_wallet),
        description=description,
        currency=currency,
    )
