from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import secrets
import uuid


class DeliveryPattern(models.TextChoices):
    DAILY = 'DAILY', 'Daily'
    ALTERNATE_DAYS = 'ALTERNATE_DAYS', 'Alternate Days'
    DAY1_DAY2 = 'DAY1_DAY2', 'Day1-Day2'
    SELECT_DAYS = 'SELECT_DAYS', 'Select Days'


class DeliveryStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    DELIVERED = 'DELIVERED', 'Delivered'
    NOT_DELIVERED = 'NOT_DELIVERED', 'Not Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'
    SKIPPED = 'SKIPPED', 'Skipped'


class FulfillmentChannel(models.TextChoices):
    STANDARD = 'STANDARD', 'Standard'
    INDRAAI = 'INDRAAI', 'Indraai Delivery'
    AGENT = 'AGENT', 'Transfer to Agent'


class SkipSource(models.TextChoices):
    CUSTOMER = 'CUSTOMER', 'Skipped by customer'
    ADMIN = 'ADMIN', 'Skipped by admin'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    FAILED = 'FAILED', 'Failed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class PaymentMode(models.TextChoices):
    WALLET = 'WALLET', 'Wallet'
    ONLINE = 'ONLINE', 'Online'
    CASH = 'CASH', 'Cash'
    UPI = 'UPI', 'UPI'
    BANK = 'BANK', 'Bank Transfer'


class SubscriptionStatus(models.TextChoices):
    ACTIVE = 'ACTIVE', 'Active'
    CANCELLED = 'CANCELLED', 'Cancelled'


class SubscriptionOrder(models.Model):
    """One checkout: groups the subscriptions bought together and their payment."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_no = models.CharField(max_length=32, unique=True, editable=False)

    member = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='subscription_orders'
    )
    # Address book lives outside this service; only the reference is kept
    delivery_address_id = models.PositiveIntegerField()

    period_days = models.PositiveSmallIntegerField()
    start_date = models.DateField()

    # Financial details
    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    wallet_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    payable_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='INR')

    # Payment tracking
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    payment_mode = models.CharField(max_length=20, choices=PaymentMode.choices, blank=True)
    payment_reference = models.CharField(max_length=100, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'subscription_orders'
        indexes = [
            models.Index(fields=['member', 'created_at']),
            models.Index(fields=['payment_status']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.order_no} - {self.total_amount} {self.currency} ({self.payment_status})"

    def save(self, *args, **kwargs):
        """Generate order number if not set."""
        if not self.order_no:
            self.order_no = self._generate_order_no()
        super().save(*args, **kwargs)

    def _generate_order_no(self):
        # Format: SUB-<yyyymmdd>-<6 hex>
        stamp = timezone.localdate().strftime('%Y%m%d')
        return f"SUB-{stamp}-{secrets.token_hex(3).upper()}"


class Subscription(models.Model):
    """Recurring delivery of one product (or variant) over a fixed period."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        SubscriptionOrder,
        on_delete=models.CASCADE,
        related_name='subscriptions'
    )
    member = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='subscriptions'
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='subscriptions'
    )
    variant = models.ForeignKey(
        'catalog.ProductVariant',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='subscriptions'
    )

    # Schedule
    period_days = models.PositiveSmallIntegerField()
    start_date = models.DateField()
    expiry_date = models.DateField()
    delivery_pattern = models.CharField(
        max_length=20,
        choices=DeliveryPattern.choices,
        default=DeliveryPattern.DAILY
    )
    weekdays = models.JSONField(default=list, blank=True)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    alt_quantity = models.PositiveIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])

    # Pricing snapshot taken at checkout
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    mrp = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    delivery_count = models.PositiveIntegerField(default=0)
    total_quantity = models.PositiveIntegerField(default=0)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    savings = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'subscriptions'
        indexes = [
            models.Index(fields=['member', 'status']),
            models.Index(fields=['expiry_date']),
            models.Index(fields=['payment_status']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.product_label} x{self.quantity} ({self.get_delivery_pattern_display()}, {self.period_days} days)"

    @property
    def product_label(self):
        if self.variant_id:
            return f"{self.product.name} - {self.variant.name}"
        return self.product.name

    def is_expired(self, today=None):
        today = today or timezone.localdate()
        return self.expiry_date < today


class DeliveryScheduleEntry(models.Model):
    """One dated, quantity-bearing delivery obligation of a subscription."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.CASCADE,
        related_name='delivery_entries'
    )
    delivery_date = models.DateField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING
    )
    fulfillment_channel = models.CharField(max_length=20, choices=FulfillmentChannel.choices, blank=True)
    skip_source = models.CharField(max_length=20, choices=SkipSource.choices, blank=True)
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    notes = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'delivery_schedule_entries'
        unique_together = [['subscription', 'delivery_date']]
        indexes = [
            models.Index(fields=['delivery_date', 'status']),
            models.Index(fields=['subscription', 'status']),
        ]
        ordering = ['delivery_date']
        verbose_name_plural = 'delivery schedule entries'

    def __str__(self):
        return f"{self.delivery_date} x{self.quantity} ({self.status})"

    def get_display_status(self, today=None):
        """Status as shown to the member; stored status is never rewritten."""
        from .services.lifecycle import display_status

        return display_status(self.status, self.delivery_date, today or timezone.localdate())
