from django.conf import settings
from rest_framework import serializers
from .models import Product, ProductVariant


PRICE_FIELDS = ['mrp', 'buy_once_price', 'price_3_day', 'price_15_day', 'price_1_month']


class ProductVariantSerializer(serializers.ModelSerializer):
    """Variant with its raw price tiers."""

    class Meta:
        model = ProductVariant
        fields = ['id', 'product', 'name', 'is_available'] + PRICE_FIELDS
        read_only_fields = fields


class ProductListSerializer(serializers.ModelSerializer):
    """Product summary for lists."""

    variant_count = serializers.IntegerField(source='variants.count', read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'unit', 'is_dairy_product', 'variant_count'] + PRICE_FIELDS
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Product with description and variants."""

    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'description',
            'unit',
            'is_dairy_product',
            'variants',
            'created_at',
            'updated_at',
        ] + PRICE_FIELDS
        read_only_fields = fields


class PricingQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for price resolution.

    Query Parameters:
        period (int): Subscription period in days; omit for every offered period
    """

    period = serializers.ChoiceField(
        choices=[(p, p) for p in settings.SUBSCRIPTION_PERIODS],
        required=False
    )


class PeriodPriceSerializer(serializers.Serializer):
    period_days = serializers.IntegerField()
    period_label = serializers.CharField()
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    mrp = serializers.DecimalField(max_digits=10, decimal_places=2)
    saving_per_unit = serializers.DecimalField(max_digits=10, decimal_places=2)
    allowed_patterns = serializers.ListField(child=serializers.CharField())
