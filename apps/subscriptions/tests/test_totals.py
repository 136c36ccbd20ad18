"""
Totals, wallet application, descriptions and quote assembly tests.
"""

import pytest
from datetime import date
from decimal import Decimal

from apps.subscriptions.models import DeliveryPattern
from apps.subscriptions.services.pricing import PriceTable
from apps.subscriptions.services.scheduling import enumerate_deliveries
from apps.subscriptions.services.totals import (
    SelectionRequest,
    SelectionTotals,
    apply_wallet,
    build_quote,
    combine_totals,
    compute_totals,
    describe_delivery,
)


MONDAY = date(2024, 1, 1)
MILK_PRICES = PriceTable(mrp=40, buy_once_price=38, price_3_day=37, price_15_day=35, price_1_month=30)


# =============================================================================
# Totals
# =============================================================================

class TestComputeTotals:
    """Tests for compute_totals()."""

    def test_daily_totals(self):
        """30 x 1 at 30.00 against MRP 40.00."""
        deliveries = enumerate_deliveries(MONDAY, 30, DeliveryPattern.DAILY, quantity=1)

        totals = compute_totals(deliveries, Decimal('30'), Decimal('40'))

        assert totals.delivery_count == 30
        assert totals.total_quantity == 30
        assert totals.total_price == Decimal('900.00')
        assert totals.savings == Decimal('300.00')

    def test_day1_day2_uses_alternating_quantities(self):
        deliveries = enumerate_deliveries(
            MONDAY, 30, DeliveryPattern.DAY1_DAY2, quantity=2, alt_quantity=1
        )

        totals = compute_totals(deliveries, Decimal('30'), Decimal('40'))

        assert totals.total_quantity == 45
        assert totals.total_price == Decimal('1350.00')

    def test_savings_never_negative(self):
        """Unit price above the reference price gives zero savings."""
        deliveries = enumerate_deliveries(MONDAY, 3, DeliveryPattern.DAILY)

        totals = compute_totals(deliveries, Decimal('50'), Decimal('40'))

        assert totals.savings == Decimal('0.00')

    def test_empty_schedule(self):
        totals = compute_totals((), Decimal('30'), Decimal('40'))

        assert totals == SelectionTotals(delivery_count=0, total_quantity=0)

    def test_amounts_rounded_half_up(self):
        deliveries = enumerate_deliveries(MONDAY, 1, DeliveryPattern.DAILY)

        totals = compute_totals(deliveries, Decimal('10.005'), Decimal('0'))

        assert totals.total_price == Decimal('10.01')


class TestCombineTotals:
    """Combined totals are the sum of per-selection totals."""

    def test_sum_is_order_independent(self):
        a = SelectionTotals(3, 3, Decimal('111.00'), Decimal('9.00'))
        b = SelectionTotals(8, 16, Decimal('560.00'), Decimal('80.00'))
        c = SelectionTotals(13, 13, Decimal('676.00'), Decimal('104.00'))

        assert combine_totals([a, b, c]) == combine_totals([c, a, b])
        assert combine_totals([a, b, c]) == (a + b) + c == a + (b + c)
        assert combine_totals([a, b, c]).total_price == Decimal('1347.00')

    def test_empty_is_zero(self):
        assert combine_totals([]) == SelectionTotals()


class TestApplyWallet:
    """Tests for apply_wallet()."""

    def test_partial_wallet(self):
        """Total 200, balance 80: deduct 80, pay 120."""
        result = apply_wallet(Decimal('200'), Decimal('80'), use_wallet=True)

        assert result.wallet_deduction == Decimal('80.00')
        assert result.amount_payable == Decimal('120.00')

    def test_wallet_covers_everything(self):
        result = apply_wallet(Decimal('200'), Decimal('500'), use_wallet=True)

        assert result.wallet_deduction == Decimal('200.00')
        assert result.amount_payable == Decimal('0.00')

    def test_wallet_not_used(self):
        result = apply_wallet(Decimal('200'), Decimal('500'), use_wallet=False)

        assert result.wallet_deduction == Decimal('0.00')
        assert result.amount_payable == Decimal('200.00')

    @pytest.mark.parametrize('balance', [Decimal('-10'), None, 0])
    def test_nonpositive_balance_deducts_nothing(self, balance):
        result = apply_wallet(Decimal('200'), balance, use_wallet=True)

        assert result.wallet_deduction == Decimal('0.00')
        assert result.amount_payable == Decimal('200.00')


# =============================================================================
# Descriptions
# =============================================================================

class TestDescribeDelivery:
    """Tests for describe_delivery()."""

    def test_daily_plural(self):
        assert describe_delivery(DeliveryPattern.DAILY, 2) == 'Daily delivery of 2 items'

    def test_daily_singular(self):
        assert describe_delivery(DeliveryPattern.DAILY, 1) == 'Daily delivery of 1 item'

    def test_alternate_days(self):
        assert describe_delivery(DeliveryPattern.ALTERNATE_DAYS, 1) == 'Alternate Day, starting from start date'

    def test_day1_day2(self):
        assert describe_delivery(DeliveryPattern.DAY1_DAY2, 2, 1) == 'Day1-Day2: 2 & 1 Qty'

    def test_select_days(self):
        description = describe_delivery(DeliveryPattern.SELECT_DAYS, 1, weekdays=('mon', 'wed', 'fri'))

        assert description == 'On Mon, Wed, Fri'

    def test_select_days_without_weekdays(self):
        assert describe_delivery(DeliveryPattern.SELECT_DAYS, 1) == 'No days selected'


# =============================================================================
# Quotes
# =============================================================================

class TestBuildQuote:
    """Tests for build_quote()."""

    def test_single_selection_quote(self):
        selection = SelectionRequest(price_table=MILK_PRICES, pattern=DeliveryPattern.DAILY, quantity=1)

        quote = build_quote([selection], 30, MONDAY, available_balance=Decimal('100'), use_wallet=True)

        assert quote.expiry_date == date(2024, 1, 30)
        assert quote.totals.total_price == Decimal('900.00')
        assert quote.totals.savings == Decimal('300.00')
        assert quote.wallet.wallet_deduction == Decimal('100.00')
        assert quote.wallet.amount_payable == Decimal('800.00')
        assert quote.description == 'Daily delivery of 1 item'

    def test_multiple_selections_are_summed(self):
        milk = SelectionRequest(price_table=MILK_PRICES, pattern=DeliveryPattern.ALTERNATE_DAYS, quantity=2)
        curd = SelectionRequest(
            price_table=PriceTable(mrp=60, price_15_day=52),
            pattern=DeliveryPattern.DAILY,
            quantity=1,
        )

        quote = build_quote([milk, curd], 15, MONDAY)

        # milk: 8 deliveries x 2 at 35.00; curd: 15 x 1 at 52.00
        assert quote.totals.delivery_count == 23
        assert quote.totals.total_quantity == 31
        assert quote.totals.total_price == Decimal('560.00') + Decimal('780.00')
        assert quote.description == '2 variants'

    def test_savings_clamped_per_selection(self):
        """A selection priced above MRP does not reduce another's savings."""
        cheap = SelectionRequest(price_table=PriceTable(mrp=40, price_3_day=30), pattern=DeliveryPattern.DAILY, quantity=1)
        pricey = SelectionRequest(price_table=PriceTable(mrp=40, price_3_day=50), pattern=DeliveryPattern.DAILY, quantity=1)

        quote = build_quote([cheap, pricey], 3, MONDAY)

        assert quote.totals.savings == Decimal('30.00')

    def test_as_display_shape(self):
        selection = SelectionRequest(
            price_table=MILK_PRICES,
            pattern=DeliveryPattern.SELECT_DAYS,
            quantity=1,
            weekdays=('mon', 'wed', 'fri'),
            product_id='p-1',
        )

        display = build_quote([selection], 30, MONDAY).as_display()

        assert display['period_label'] == '30 Days (Super Saver Pack)'
        assert display['delivery_count'] == 13
        assert display['amount_payable'] == Decimal('390.00')
        assert display['delivery_description'] == 'On Mon, Wed, Fri'
        assert display['selections'][0]['product_id'] == 'p-1'
        assert display['selections'][0]['weekdays'] == ['mon', 'wed', 'fri']
        assert display['selections'][0]['delivery_dates'][0] == MONDAY
