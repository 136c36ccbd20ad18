from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import Product, ProductVariant
from .serializers import (
    PeriodPriceSerializer,
    PricingQuerySerializer,
    ProductListSerializer,
    ProductSerializer,
    ProductVariantSerializer,
)
from .services import period_prices


class CatalogPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


def _pricing_response(request, source):
    query = PricingQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    period = query.validated_data.get('period')
    rows = period_prices(source, [period] if period else None)
    return Response(PeriodPriceSerializer(rows, many=True).data)


pricing_schema = extend_schema(
    parameters=[OpenApiParameter('period', int, description='Period in days (3, 15 or 30)')],
    responses={200: PeriodPriceSerializer(many=True)},
)


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Active products, public read-only.

    list: Active products
    retrieve: Product with variants
    pricing: Resolved subscription price per period (products without variants)
    """

    queryset = Product.objects.filter(is_active=True).prefetch_related('variants')
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    pagination_class = CatalogPagination

    def get_queryset(self):
        queryset = super().get_queryset()
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(name__icontains=search)
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductListSerializer
        return ProductSerializer

    @pricing_schema
    @action(detail=True, methods=['get'])
    def pricing(self, request, pk=None):
        """GET /api/catalog/products/{id}/pricing/?period=30"""
        return _pricing_response(request, self.get_object())


class ProductVariantViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Available variants of active products.

    pricing: Resolved subscription price per period
    """

    queryset = ProductVariant.objects.filter(
        is_available=True,
        product__is_active=True,
    ).select_related('product')
    serializer_class = ProductVariantSerializer
    permission_classes = [AllowAny]
    pagination_class = CatalogPagination

    @pricing_schema
    @action(detail=True, methods=['get'])
    def pricing(self, request, pk=None):
        """GET /api/catalog/variants/{id}/pricing/?period=30"""
        return _pricing_response(request, self.get_object())
