import pytest
from datetime import timedelta
from decimal import Decimal
from rest_framework.test import APIClient
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.catalog.models import Product, ProductVariant
from apps.wallet.services import credit_wallet
from apps.subscriptions.models import (
    DeliveryPattern,
    DeliveryScheduleEntry,
    DeliveryStatus,
)
from apps.subscriptions.services import create_subscription_order


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def today():
    """Local date the services treat as today."""
    return timezone.localdate()


@pytest.fixture
def start_date(today):
    """Earliest start date allowed by the lead time."""
    return today + timedelta(days=3)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def member(db):
    """Subscribing customer."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        display_name='Member',
        mobile='9820000001',
    )


@pytest.fixture
def other_member(db):
    """Customer with no access to member's subscriptions."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        display_name='Other Member',
    )


@pytest.fixture
def staff_user(db):
    """Dispatch team user."""
    return User.objects.create_user(
        email='staff@example.com',
        password='TestPass123!',
        display_name='Dispatch',
        is_staff=True,
    )


@pytest.fixture
def member_client(member):
    return _client_for(member)


@pytest.fixture
def other_client(other_member):
    return _client_for(other_member)


@pytest.fixture
def staff_client(staff_user):
    return _client_for(staff_user)


@pytest.fixture
def milk(db):
    """Product sold through variants."""
    return Product.objects.create(name='Cow Milk', unit='pouch')


@pytest.fixture
def milk_500(milk):
    """Variant with every price tier."""
    return ProductVariant.objects.create(
        product=milk,
        name='500 ml',
        mrp=Decimal('40.00'),
        buy_once_price=Decimal('38.00'),
        price_3_day=Decimal('37.00'),
        price_15_day=Decimal('35.00'),
        price_1_month=Decimal('30.00'),
    )


@pytest.fixture
def curd(db):
    """Product without variants, priced on the product itself."""
    return Product.objects.create(
        name='Curd',
        unit='400 g',
        mrp=Decimal('60.00'),
        buy_once_price=Decimal('55.00'),
        price_15_day=Decimal('52.00'),
    )


@pytest.fixture
def funded_member(member):
    """Member with 1000.00 in the wallet."""
    credit_wallet(member=member, amount=Decimal('1000.00'), reference='TEST-TOPUP')
    return member


@pytest.fixture
def milk_selection(milk, milk_500):
    return {
        'product_id': milk.id,
        'variant_id': milk_500.id,
        'delivery_pattern': DeliveryPattern.DAILY,
        'quantity': 1,
    }


@pytest.fixture
def paid_order(funded_member, milk_selection, start_date, today):
    """15-day daily milk order fully paid from the wallet (15 x 35.00 = 525.00)."""
    return create_subscription_order(
        member=funded_member,
        selections=[milk_selection],
        period_days=15,
        start_date=start_date,
        delivery_address_id=7,
        use_wallet=True,
        today=today,
    )


@pytest.fixture
def unpaid_order(member, milk_selection, start_date, today):
    """15-day daily milk order waiting for an external payment."""
    return create_subscription_order(
        member=member,
        selections=[milk_selection],
        period_days=15,
        start_date=start_date,
        delivery_address_id=7,
        use_wallet=False,
        today=today,
    )


@pytest.fixture
def paid_subscription(paid_order):
    return paid_order.subscriptions.get()


@pytest.fixture
def future_entry(paid_subscription):
    """First delivery of the paid subscription (dated start_date)."""
    return paid_subscription.delivery_entries.order_by('delivery_date').first()


@pytest.fixture
def make_entry():
    """Create a delivery entry on an existing subscription at a given date/status."""
    def _make(subscription, delivery_date, status=DeliveryStatus.PENDING, quantity=1):
        return DeliveryScheduleEntry.objects.create(
            subscription=subscription,
            delivery_date=delivery_date,
            quantity=quantity,
            status=status,
        )
    return _make

