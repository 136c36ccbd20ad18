"""
Subscriptions service layer.

Pure schedule, price and totals computation plus the persistence-facing
checkout and delivery services.
"""

from .scheduling import (
    ScheduledDelivery,
    QuantitySlot,
    enumerate_deliveries,
    normalize_weekdays,
    delivery_window,
    is_pattern_allowed,
    allowed_patterns,
    ensure_pattern_allowed,
    downgrade_pattern_for_period,
    validate_selection,
    validate_start_date,
)
from .pricing import (
    PriceTable,
    resolve_unit_price,
    savings_reference_price,
)
from .totals import (
    SelectionTotals,
    WalletApplication,
    SelectionRequest,
    Quote,
    compute_totals,
    combine_totals,
    apply_wallet,
    describe_delivery,
    build_quote,
)
from .lifecycle import (
    can_skip,
    ensure_can_skip,
    ensure_can_transition,
    display_status,
    status_label,
)
from .checkout import (
    quote_subscription,
    create_subscription_order,
    to_checkout_payload,
    cancel_subscription,
    cancel_order,
    record_payment,
)
from .delivery_management import (
    SkipResult,
    skip_delivery,
    update_delivery_status,
    delivery_sheet,
)

__all__ = [
    # Scheduling
    'ScheduledDelivery',
    'QuantitySlot',
    'enumerate_deliveries',
    'normalize_weekdays',
    'delivery_window',
    'is_pattern_allowed',
    'allowed_patterns',
    'ensure_pattern_allowed',
    'downgrade_pattern_for_period',
    'validate_selection',
    'validate_start_date',
    # Pricing
    'PriceTable',
    'resolve_unit_price',
    'savings_reference_price',
    # Totals
    'SelectionTotals',
    'WalletApplication',
    'SelectionRequest',
    'Quote',
    'compute_totals',
    'combine_totals',
    'apply_wallet',
    'describe_delivery',
    'build_quote',
    # Lifecycle
    'can_skip',
    'ensure_can_skip',
    'ensure_can_transition',
    'display_status',
    'status_label',
    # Checkout
    'quote_subscription',
    'create_subscription_order',
    'to_checkout_payload',
    'cancel_subscription',
    'cancel_order',
    'record_payment',
    # Deliveries
    'SkipResult',
    'skip_delivery',
    'update_delivery_status',
    'delivery_sheet',
]
