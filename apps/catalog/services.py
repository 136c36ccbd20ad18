"""
Catalog Services Module
=======================

Bulk catalog import and per-period price listing.

Catalog payloads come from the storefront backend in a few shapes: a bare
list of products, or an envelope ``{"data": [...]}``. Product and variant
price keys may be snake_case or camelCase. ``unwrap_collection`` and
``PriceTable.from_source`` absorb those differences so the rest of the code
sees one shape.

Example:
    Importing a catalog export::

        from apps.catalog.services import import_catalog

        with open('catalog.json') as fh:
            summary = import_catalog(json.load(fh))
        print(summary.products_created, summary.variants_created)
"""
import logging
from dataclasses import asdict, dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction

from apps.subscriptions.services.pricing import PriceTable, resolve_unit_price, savings_reference_price
from apps.subscriptions.services.scheduling import PERIOD_LABELS, allowed_patterns
from .exceptions import CatalogImportError
from .models import Product, ProductVariant

logger = logging.getLogger(__name__)


def unwrap_collection(payload):
    """
    Return the list of records from a bare list or a ``{"data": [...]}`` envelope.

    Raises:
        CatalogImportError: Payload is neither shape
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get('data'), list):
        return payload['data']
    raise CatalogImportError('Expected a list of records or an object with a "data" list.')


@dataclass
class CatalogImportSummary:
    products_created: int = 0
    products_updated: int = 0
    variants_created: int = 0
    variants_updated: int = 0


def _price_fields(record):
    table = PriceTable.from_source(record)
    return {
        'mrp': table.mrp,
        'buy_once_price': table.buy_once_price,
        'price_3_day': table.price_3_day,
        'price_15_day': table.price_15_day,
        'price_1_month': table.price_1_month,
    }


@transaction.atomic
def import_catalog(payload) -> CatalogImportSummary:
    """
    Create or update products and variants from a catalog export.

    Products are matched by name, variants by (product, name). Prices that
    are missing or not positive are stored as empty.

    Raises:
        CatalogImportError: Malformed payload (whole import is rolled back)
    """
    summary = CatalogImportSummary()

    for index, record in enumerate(unwrap_collection(payload)):
        if not isinstance(record, dict) or not str(record.get('name') or '').strip():
            raise CatalogImportError(f"Record {index} has no product name.")

        defaults = {
            'description': record.get('description') or '',
            'unit': record.get('unit') or '',
            'is_dairy_product': bool(record.get('isDairyProduct', record.get('is_dairy_product', True))),
            'is_active': bool(record.get('isActive', record.get('is_active', True))),
            **_price_fields(record),
        }
        product, created = Product.objects.update_or_create(
            name=record['name'].strip(),
            defaults=defaults,
        )
        if created:
            summary.products_created += 1
        else:
            summary.products_updated += 1

        for variant_record in record.get('variants') or []:
            name = str(variant_record.get('name') or '').strip()
            if not name:
                raise CatalogImportError(f"Variant of '{product.name}' has no name.")

            _, variant_created = ProductVariant.objects.update_or_create(
                product=product,
                name=name,
                defaults={
                    'is_available': bool(variant_record.get('isAvailable', variant_record.get('is_available', True))),
                    **_price_fields(variant_record),
                },
            )
            if variant_created:
                summary.variants_created += 1
            else:
                summary.variants_updated += 1

    logger.info(
        "Catalog imported",
        extra={'extra_data': asdict(summary)},
    )
    return summary


def period_prices(source, periods=None):
    """
    Resolved per-unit price for each offered period of a product or variant.

    Returns:
        list[dict]: One row per period with unit_price, mrp, saving_per_unit
            and the delivery patterns offered for that period
    """
    table = PriceTable.from_source(source)
    reference = savings_reference_price(table)
    rows = []
    for period in periods or settings.SUBSCRIPTION_PERIODS:
        unit_price = resolve_unit_price(table, period)
        rows.append({
            'period_days': period,
            'period_label': PERIOD_LABELS.get(period, f"{period} Days"),
            'unit_price': unit_price,
            'mrp': reference,
            'saving_per_unit': max(reference - unit_price, Decimal('0')),
            'allowed_patterns': [pattern.value for pattern in allowed_patterns(period)],
        })
    return rows
