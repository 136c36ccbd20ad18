from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import DeliveryScheduleEntry, Subscription, SubscriptionOrder
from .permissions import IsDeliveryOwner, IsStaffMember, IsSubscriptionOwner
from .serializers import (
    CheckoutInputSerializer,
    DeliveryFilterSerializer,
    DeliveryScheduleEntrySerializer,
    DeliverySheetRowSerializer,
    QuoteSerializer,
    RecordPaymentInputSerializer,
    SkipResultSerializer,
    SubscriptionListSerializer,
    SubscriptionOrderSerializer,
    SubscriptionRequestSerializer,
    SubscriptionSerializer,
    UpdateDeliveryStatusInputSerializer,
)
from .services import (
    cancel_order,
    cancel_subscription,
    create_subscription_order,
    delivery_sheet,
    quote_subscription,
    record_payment,
    skip_delivery,
    to_checkout_payload,
    update_delivery_status,
)


class SubscriptionPagination(PageNumberPagination):
    """Custom pagination for subscriptions and deliveries."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class SubscriptionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for member subscriptions.

    list: Current member's subscriptions (staff: all)
    retrieve: Subscription with its delivery schedule
    quote: Price a subscription request without saving it
    checkout: Create the order, subscriptions and delivery schedule
    cancel: Cancel a subscription's future deliveries
    """

    queryset = Subscription.objects.select_related('product', 'variant', 'order')
    serializer_class = SubscriptionSerializer
    permission_classes = [IsAuthenticated, IsSubscriptionOwner]
    pagination_class = SubscriptionPagination

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('delivery_entries')
        if not self.request.user.is_staff:
            queryset = queryset.filter(member=self.request.user)
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return SubscriptionListSerializer
        return SubscriptionSerializer

    @extend_schema(request=SubscriptionRequestSerializer, responses={200: QuoteSerializer})
    @action(detail=False, methods=['post'])
    def quote(self, request):
        """
        Price a subscription request.

        POST /api/subscriptions/quote/
        Body: {"selections": [...], "period_days": 30, "start_date": "...", "use_wallet": true}
        """
        input_serializer = SubscriptionRequestSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        quote = quote_subscription(
            member=request.user,
            selections=data['selections'],
            period_days=data['period_days'],
            start_date=data['start_date'],
            use_wallet=data['use_wallet'],
        )
        return Response(QuoteSerializer(quote.as_display()).data)

    @extend_schema(request=CheckoutInputSerializer, responses={201: SubscriptionOrderSerializer})
    @action(detail=False, methods=['post'])
    def checkout(self, request):
        """
        Check out a subscription request.

        POST /api/subscriptions/checkout/
        Body: quote body plus {"delivery_address_id": 12}
        """
        input_serializer = CheckoutInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        order = create_subscription_order(
            member=request.user,
            selections=data['selections'],
            period_days=data['period_days'],
            start_date=data['start_date'],
            delivery_address_id=data['delivery_address_id'],
            use_wallet=data['use_wallet'],
        )
        return Response(
            {
                'order': SubscriptionOrderSerializer(order).data,
                'checkout': to_checkout_payload(order),
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        Cancel a subscription.

        POST /api/subscriptions/{id}/cancel/
        """
        subscription = self.get_object()
        subscription, cancelled = cancel_subscription(
            subscription_id=subscription.id,
            member=request.user,
        )
        return Response({
            'subscription': SubscriptionListSerializer(subscription).data,
            'cancelled_deliveries': cancelled,
        })


class SubscriptionOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for subscription orders.

    list: Current member's orders (staff: all)
    retrieve: Order with its subscriptions
    cancel: Cancel every subscription of the order
    record_payment: Staff confirms an external payment
    """

    queryset = SubscriptionOrder.objects.select_related('member').prefetch_related(
        'subscriptions__product',
        'subscriptions__variant',
    )
    serializer_class = SubscriptionOrderSerializer
    permission_classes = [IsAuthenticated, IsSubscriptionOwner]
    pagination_class = SubscriptionPagination

    def get_permissions(self):
        if self.action == 'record_payment':
            return [IsAuthenticated(), IsStaffMember()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        if not self.request.user.is_staff:
            queryset = queryset.filter(member=self.request.user)
        return queryset

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        Cancel an order.

        POST /api/subscriptions/orders/{id}/cancel/
        """
        order = self.get_object()
        order, cancelled = cancel_order(order_id=order.id, member=request.user)
        return Response({
            'order': SubscriptionOrderSerializer(order).data,
            'cancelled_deliveries': cancelled,
        })

    @extend_schema(request=RecordPaymentInputSerializer, responses={200: SubscriptionOrderSerializer})
    @action(detail=True, methods=['post'])
    def record_payment(self, request, pk=None):
        """
        Record an external payment.

        POST /api/subscriptions/orders/{id}/record_payment/
        Body: {"payment_mode": "UPI", "payment_reference": "..."}
        """
        input_serializer = RecordPaymentInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        order = record_payment(
            order_id=self.get_object().id,
            payment_mode=input_serializer.validated_data['payment_mode'],
            payment_reference=input_serializer.validated_data['payment_reference'],
        )
        return Response(SubscriptionOrderSerializer(order).data)


class DeliveryEntryViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for delivery schedule entries.

    list: Member's deliveries; staff get the dispatch sheet (PAID only
          unless payment_status is given)
    retrieve: One delivery
    skip: Member skips an upcoming delivery
    update_status: Staff records the delivery outcome
    """

    queryset = DeliveryScheduleEntry.objects.select_related('subscription')
    serializer_class = DeliveryScheduleEntrySerializer
    permission_classes = [IsAuthenticated, IsDeliveryOwner]
    pagination_class = SubscriptionPagination

    def get_permissions(self):
        if self.action == 'update_status':
            return [IsAuthenticated(), IsStaffMember()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        if self.action != 'list':
            queryset = super().get_queryset()
            if not user.is_staff:
                queryset = queryset.filter(subscription__member=user)
            return queryset

        filter_serializer = DeliveryFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        filters = {
            'delivery_date': params.get('date'),
            'date_from': params.get('date_from'),
            'date_to': params.get('date_to'),
            'status': params.get('status'),
            'subscription_id': params.get('subscription'),
        }
        if user.is_staff:
            return delivery_sheet(payment_status=params.get('payment_status', 'PAID'), **filters)
        return delivery_sheet(payment_status=params.get('payment_status'), member=user, **filters)

    def get_serializer_class(self):
        if self.action == 'list' and self.request.user.is_staff:
            return DeliverySheetRowSerializer
        return DeliveryScheduleEntrySerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['today'] = timezone.localdate()
        return context

    @extend_schema(
        parameters=[
            OpenApiParameter('date', str, description='Delivery date (YYYY-MM-DD)'),
            OpenApiParameter('status', str, description='Stored delivery status'),
            OpenApiParameter('payment_status', str, description='Subscription payment status'),
        ]
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=None, responses={200: SkipResultSerializer})
    @action(detail=True, methods=['post'])
    def skip(self, request, pk=None):
        """
        Skip an upcoming delivery.

        POST /api/subscriptions/deliveries/{id}/skip/
        """
        entry = self.get_object()
        result = skip_delivery(entry_id=entry.id, member=request.user)
        return Response(SkipResultSerializer(result, context=self.get_serializer_context()).data)

    @extend_schema(request=UpdateDeliveryStatusInputSerializer, responses={200: DeliveryScheduleEntrySerializer})
    @action(detail=True, methods=['post'])
    def update_status(self, request, pk=None):
        """
        Record a delivery outcome.

        POST /api/subscriptions/deliveries/{id}/update_status/
        Body: {"status": "DELIVERED", "fulfillment_channel": "AGENT", "notes": ""}
        """
        input_serializer = UpdateDeliveryStatusInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        entry = update_delivery_status(
            entry_id=self.get_object().id,
            status=data['status'],
            fulfillment_channel=data['fulfillment_channel'],
            notes=data['notes'],
        )
        return Response(DeliveryScheduleEntrySerializer(entry, context=self.get_serializer_context()).data)
