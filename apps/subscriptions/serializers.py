from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from apps.accounts.models import User
from .models import (
    DeliveryPattern,
    DeliveryScheduleEntry,
    DeliveryStatus,
    FulfillmentChannel,
    PaymentMode,
    PaymentStatus,
    Subscription,
    SubscriptionOrder,
)
from .services.lifecycle import TERMINAL_STATUSES, can_skip, status_label


# =============================================================================
# Input Serializers
# =============================================================================

class WeekdayField(serializers.Field):
    """Weekday given as a code/name ('mon', 'Monday') or an int with Sunday == 0."""

    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (str, int)):
            raise serializers.ValidationError('Weekday must be a name or a number 0-6.')
        return data

    def to_representation(self, value):
        return value


class SelectionInputSerializer(serializers.Serializer):
    """
    One product (or variant) in a subscription request.

    Fields:
        product_id (UUID): Product to subscribe to
        variant_id (UUID): Optional variant of that product
        delivery_pattern (str): DAILY, ALTERNATE_DAYS, DAY1_DAY2 or SELECT_DAYS
        quantity (int): Quantity per delivery (day-1 quantity for DAY1_DAY2)
        alt_quantity (int): Day-2 quantity for DAY1_DAY2
        weekdays (list): Delivery weekdays for SELECT_DAYS
    """

    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    delivery_pattern = serializers.ChoiceField(
        choices=DeliveryPattern.choices,
        default=DeliveryPattern.DAILY
    )
    quantity = serializers.IntegerField(min_value=1)
    alt_quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    weekdays = serializers.ListField(child=WeekdayField(), required=False, default=list)


class SubscriptionRequestSerializer(serializers.Serializer):
    """
    Validate a quote request.

    Pattern/period policy, lead time and weekday rules are checked by the
    service layer so quote and checkout report them identically.
    """

    selections = SelectionInputSerializer(many=True)
    period_days = serializers.ChoiceField(choices=[(p, p) for p in settings.SUBSCRIPTION_PERIODS])
    start_date = serializers.DateField()
    use_wallet = serializers.BooleanField(default=True)

    def validate_selections(self, value):
        if not value:
            raise serializers.ValidationError('Select at least one product.')
        return value


class CheckoutInputSerializer(SubscriptionRequestSerializer):
    """Quote request plus the delivery address."""

    delivery_address_id = serializers.IntegerField(min_value=1)


class DeliveryFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for delivery filtering.

    Query Parameters:
        date (date): Exact delivery date
        date_from (date): Deliveries on or after this date
        date_to (date): Deliveries on or before this date
        status (str): Stored delivery status
        payment_status (str): Payment status of the subscription
        subscription (UUID): Only this subscription's deliveries
    """

    date = serializers.DateField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=DeliveryStatus.choices, required=False)
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    subscription = serializers.UUIDField(required=False)

    def validate(self, attrs):
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs


class UpdateDeliveryStatusInputSerializer(serializers.Serializer):
    """Staff delivery update."""

    status = serializers.ChoiceField(
        choices=[(s.value, s.label) for s in DeliveryStatus if s in TERMINAL_STATUSES]
    )
    fulfillment_channel = serializers.ChoiceField(
        choices=FulfillmentChannel.choices,
        required=False,
        default=''
    )
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class RecordPaymentInputSerializer(serializers.Serializer):
    """Staff payment confirmation for an order paid outside the wallet."""

    payment_mode = serializers.ChoiceField(choices=PaymentMode.choices)
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


# =============================================================================
# Output Serializers
# =============================================================================

class SelectionQuoteSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(allow_null=True)
    delivery_pattern = serializers.CharField()
    quantity = serializers.IntegerField()
    alt_quantity = serializers.IntegerField(allow_null=True)
    weekdays = serializers.ListField(child=serializers.CharField())
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    delivery_count = serializers.IntegerField()
    total_quantity = serializers.IntegerField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    savings = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField()
    delivery_dates = serializers.ListField(child=serializers.DateField())


class QuoteSerializer(serializers.Serializer):
    """Display summary of a priced subscription request (Quote.as_display())."""

    period_days = serializers.IntegerField()
    period_label = serializers.CharField()
    start_date = serializers.DateField()
    expiry_date = serializers.DateField()
    delivery_count = serializers.IntegerField()
    total_quantity = serializers.IntegerField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    savings = serializers.DecimalField(max_digits=12, decimal_places=2)
    wallet_deduction = serializers.DecimalField(max_digits=12, decimal_places=2)
    amount_payable = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    delivery_description = serializers.CharField()
    selections = SelectionQuoteSerializer(many=True)


class MemberMinimalSerializer(serializers.ModelSerializer):
    """Minimal member info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name', 'mobile']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class DeliveryScheduleEntrySerializer(serializers.ModelSerializer):
    """Delivery entry with its member-facing status."""

    display_status = serializers.SerializerMethodField()
    status_label = serializers.SerializerMethodField()
    can_skip = serializers.SerializerMethodField()

    class Meta:
        model = DeliveryScheduleEntry
        fields = [
            'id',
            'subscription',
            'delivery_date',
            'quantity',
            'status',
            'display_status',
            'status_label',
            'can_skip',
            'fulfillment_channel',
            'skip_source',
            'refund_amount',
            'notes',
            'updated_at',
        ]
        read_only_fields = fields

    def _today(self):
        return self.context.get('today') or timezone.localdate()

    def get_display_status(self, obj):
        return obj.get_display_status(self._today())

    def get_status_label(self, obj):
        return status_label(
            obj.status,
            obj.delivery_date,
            self._today(),
            skip_source=obj.skip_source,
            fulfillment_channel=obj.fulfillment_channel,
        )

    def get_can_skip(self, obj):
        return can_skip(obj.status, obj.delivery_date, self._today())


class DeliverySheetRowSerializer(DeliveryScheduleEntrySerializer):
    """Delivery entry with the details a dispatcher needs."""

    member = MemberMinimalSerializer(source='subscription.member', read_only=True)
    product = serializers.CharField(source='subscription.product_label', read_only=True)
    order_no = serializers.CharField(source='subscription.order.order_no', read_only=True)
    delivery_address_id = serializers.IntegerField(source='subscription.order.delivery_address_id', read_only=True)
    payment_status = serializers.CharField(source='subscription.payment_status', read_only=True)

    class Meta(DeliveryScheduleEntrySerializer.Meta):
        fields = DeliveryScheduleEntrySerializer.Meta.fields + [
            'member',
            'product',
            'order_no',
            'delivery_address_id',
            'payment_status',
        ]
        read_only_fields = fields


class SubscriptionListSerializer(serializers.ModelSerializer):
    """Subscription summary for lists."""

    product = serializers.CharField(source='product_label', read_only=True)
    order_no = serializers.CharField(source='order.order_no', read_only=True)

    class Meta:
        model = Subscription
        fields = [
            'id',
            'order',
            'order_no',
            'product',
            'product_id',
            'variant_id',
            'period_days',
            'start_date',
            'expiry_date',
            'delivery_pattern',
            'quantity',
            'alt_quantity',
            'weekdays',
            'amount',
            'savings',
            'payment_status',
            'status',
            'created_at',
        ]
        read_only_fields = fields


class SubscriptionSerializer(SubscriptionListSerializer):
    """Subscription with pricing snapshot and its delivery schedule."""

    delivery_entries = DeliveryScheduleEntrySerializer(many=True, read_only=True)

    class Meta(SubscriptionListSerializer.Meta):
        fields = SubscriptionListSerializer.Meta.fields + [
            'unit_price',
            'mrp',
            'delivery_count',
            'total_quantity',
            'delivery_entries',
        ]
        read_only_fields = fields


class SubscriptionOrderSerializer(serializers.ModelSerializer):
    """Order with its subscriptions."""

    member = MemberMinimalSerializer(read_only=True)
    subscriptions = SubscriptionListSerializer(many=True, read_only=True)

    class Meta:
        model = SubscriptionOrder
        fields = [
            'id',
            'order_no',
            'member',
            'delivery_address_id',
            'period_days',
            'start_date',
            'total_amount',
            'wallet_amount',
            'payable_amount',
            'currency',
            'payment_status',
            'payment_mode',
            'payment_reference',
            'paid_at',
            'subscriptions',
            'created_at',
        ]
        read_only_fields = fields


class SkipResultSerializer(serializers.Serializer):
    new_status = serializers.CharField()
    refund_amount = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    delivery = DeliveryScheduleEntrySerializer(source='entry')
