from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'catalog'

router = DefaultRouter()
router.register(r'products', views.ProductViewSet, basename='product')
router.register(r'variants', views.ProductVariantViewSet, basename='variant')

urlpatterns = [
    # GET /api/catalog/products/                 - Active products
    # GET /api/catalog/products/{id}/            - Product with variants
    # GET /api/catalog/products/{id}/pricing/    - Per-period prices
    # GET /api/catalog/variants/{id}/pricing/    - Per-period prices of a variant
    path('', include(router.urls)),
]
