import pytest
from decimal import Decimal
from rest_framework.test import APIClient

from apps.catalog.models import Product, ProductVariant


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def milk(db):
    return Product.objects.create(name='Cow Milk', unit='pouch')


@pytest.fixture
def milk_500(milk):
    """Variant with a 15-day price but no 3-day price."""
    return ProductVariant.objects.create(
        product=milk,
        name='500 ml',
        mrp=Decimal('40.00'),
        buy_once_price=Decimal('38.00'),
        price_15_day=Decimal('35.00'),
        price_1_month=Decimal('30.00'),
    )


@pytest.fixture
def hidden_product(db):
    return Product.objects.create(name='Old Stock', is_active=False, mrp=Decimal('10.00'))


@pytest.fixture
def catalog_payload():
    """Storefront export in its enveloped, camelCase shape."""
    return {
        'data': [
            {
                'name': 'Cow Milk',
                'unit': 'pouch',
                'isDairyProduct': True,
                'variants': [
                    {'name': '500 ml', 'mrp': '40', 'buyOncePrice': '38', 'price15Day': '35', 'price1Month': '30'},
                    {'name': '1 L', 'mrp': 78, 'price3Day': 0, 'isAvailable': False},
                ],
            },
            {
                'name': 'Desi Ghee',
                'unit': '500 ml',
                'is_dairy_product': False,
                'mrp': '650.00',
            },
        ]
    }
