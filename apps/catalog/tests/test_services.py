"""
Catalog service tests: bulk import and per-period prices.
"""

import pytest
from decimal import Decimal

from apps.catalog.exceptions import CatalogImportError
from apps.catalog.models import Product, ProductVariant
from apps.catalog.services import import_catalog, period_prices, unwrap_collection


class TestUnwrapCollection:
    """Tests for unwrap_collection()."""

    def test_bare_list(self):
        assert unwrap_collection([{'name': 'Curd'}]) == [{'name': 'Curd'}]

    def test_data_envelope(self):
        assert unwrap_collection({'data': [{'name': 'Curd'}]}) == [{'name': 'Curd'}]

    @pytest.mark.parametrize('payload', [{'items': []}, {'data': {}}, 'Curd', None])
    def test_other_shapes_rejected(self, payload):
        with pytest.raises(CatalogImportError):
            unwrap_collection(payload)


@pytest.mark.django_db
class TestImportCatalog:
    """Tests for import_catalog()."""

    def test_creates_products_and_variants(self, catalog_payload):
        summary = import_catalog(catalog_payload)

        assert summary.products_created == 2
        assert summary.variants_created == 2

        ghee = Product.objects.get(name='Desi Ghee')
        assert ghee.is_dairy_product is False
        assert ghee.mrp == Decimal('650.00')

        small = ProductVariant.objects.get(product__name='Cow Milk', name='500 ml')
        assert small.buy_once_price == Decimal('38')
        assert small.price_15_day == Decimal('35')
        assert small.price_3_day is None

    def test_non_positive_prices_stored_empty(self, catalog_payload):
        import_catalog(catalog_payload)

        litre = ProductVariant.objects.get(name='1 L')
        assert litre.price_3_day is None
        assert litre.is_available is False

    def test_reimport_updates(self, catalog_payload):
        import_catalog(catalog_payload)
        catalog_payload['data'][1]['mrp'] = '700.00'

        summary = import_catalog(catalog_payload)

        assert summary.products_updated == 2
        assert summary.variants_updated == 2
        assert Product.objects.get(name='Desi Ghee').mrp == Decimal('700.00')

    def test_missing_name_rolls_back(self, catalog_payload):
        catalog_payload['data'].append({'unit': '1 kg'})

        with pytest.raises(CatalogImportError):
            import_catalog(catalog_payload)

        assert Product.objects.count() == 0


@pytest.mark.django_db
class TestPeriodPrices:
    """Tests for period_prices()."""

    def test_rows_per_offered_period(self, milk_500):
        rows = {row['period_days']: row for row in period_prices(milk_500)}

        assert set(rows) == {3, 15, 30}
        assert rows[3]['unit_price'] == Decimal('38.00')
        assert rows[15]['unit_price'] == Decimal('35.00')
        assert rows[30]['saving_per_unit'] == Decimal('10.00')
        assert rows[3]['allowed_patterns'] == ['DAILY']
        assert rows[30]['allowed_patterns'] == ['DAILY', 'ALTERNATE_DAYS', 'DAY1_DAY2', 'SELECT_DAYS']

    def test_single_period(self, milk_500):
        rows = period_prices(milk_500, [15])

        assert len(rows) == 1
        assert rows[0]['period_label'] == '15 Days (Mid Saver Pack)'

    def test_saving_never_negative(self):
        rows = period_prices({'mrp': '30', 'price15Day': '35'}, [15])

        assert rows[0]['saving_per_unit'] == Decimal('0')
