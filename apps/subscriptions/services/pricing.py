"""
Per-unit price resolution for a subscription period.

A product or variant carries an optional price per offered period plus a
one-time purchase price and a list price (MRP). Missing, zero, negative or
unparsable prices count as absent.
"""
from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Optional


# Period length -> price field
TIER_FIELDS = {
    3: 'price_3_day',
    15: 'price_15_day',
    30: 'price_1_month',
}

# Field -> accepted source keys (model attributes or payload keys)
_SOURCE_KEYS = {
    'mrp': ('mrp',),
    'buy_once_price': ('buy_once_price', 'buyOncePrice'),
    'price_3_day': ('price_3_day', 'price3Day'),
    'price_15_day': ('price_15_day', 'price15Day'),
    'price_1_month': ('price_1_month', 'price1Month'),
}


def to_price(value) -> Optional[Decimal]:
    """Return value as a positive finite Decimal, or None when it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


@dataclass(frozen=True)
class PriceTable:
    mrp: Optional[Decimal] = None
    buy_once_price: Optional[Decimal] = None
    price_3_day: Optional[Decimal] = None
    price_15_day: Optional[Decimal] = None
    price_1_month: Optional[Decimal] = None

    def __post_init__(self):
        for field in fields(self):
            object.__setattr__(self, field.name, to_price(getattr(self, field.name)))

    @classmethod
    def from_source(cls, source) -> 'PriceTable':
        """
        Build a price table from a model instance or a payload mapping.

        Mappings may use snake_case or camelCase keys; payloads arrive in
        either shape depending on the client.
        """
        if isinstance(source, Mapping):
            def lookup(keys):
                return next((source[key] for key in keys if key in source), None)
        else:
            def lookup(keys):
                return next((getattr(source, key) for key in keys if hasattr(source, key)), None)

        return cls(**{name: lookup(keys) for name, keys in _SOURCE_KEYS.items()})

    def tier_for(self, period_days: int) -> Optional[Decimal]:
        field = TIER_FIELDS.get(period_days)
        return getattr(self, field) if field else None


def resolve_unit_price(table: PriceTable, period_days: int) -> Decimal:
    """
    Resolve the per-unit price charged for a period.

    Fallback chain: the period's own price, then the buy-once price, then
    MRP, then zero.
    """
    for candidate in (table.tier_for(period_days), table.buy_once_price, table.mrp):
        if candidate is not None:
            return candidate
    return Decimal('0')


def savings_reference_price(table: PriceTable) -> Decimal:
    """List price used to measure savings: MRP, else buy-once price, else zero."""
    for candidate in (table.mrp, table.buy_once_price):
        if candidate is not None:
            return candidate
    return Decimal('0')
