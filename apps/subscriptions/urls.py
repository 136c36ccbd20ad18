from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'subscriptions'

# Router for ViewSets
# Note: orders and deliveries must be registered BEFORE empty prefix to avoid URL conflicts
router = DefaultRouter()
router.register(r'orders', views.SubscriptionOrderViewSet, basename='order')
router.register(r'deliveries', views.DeliveryEntryViewSet, basename='delivery')
router.register(r'', views.SubscriptionViewSet, basename='subscription')

urlpatterns = [
    # Subscription routes
    # GET    /api/subscriptions/               - List subscriptions
    # GET    /api/subscriptions/{id}/          - Subscription with schedule
    # POST   /api/subscriptions/quote/         - Price a request
    # POST   /api/subscriptions/checkout/      - Create order + schedule
    # POST   /api/subscriptions/{id}/cancel/   - Cancel future deliveries

    # Order routes
    # GET    /api/subscriptions/orders/                      - List orders
    # POST   /api/subscriptions/orders/{id}/cancel/          - Cancel whole order
    # POST   /api/subscriptions/orders/{id}/record_payment/  - Staff: record payment

    # Delivery routes
    # GET    /api/subscriptions/deliveries/                     - Deliveries / dispatch sheet
    # POST   /api/subscriptions/deliveries/{id}/skip/           - Skip upcoming delivery
    # POST   /api/subscriptions/deliveries/{id}/update_status/  - Staff: record outcome

    path('', include(router.urls)),
]
