# Generated manually for the subscriptions backend

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


PAYMENT_STATUS_CHOICES = [
    ('PENDING', 'Pending'),
    ('PAID', 'Paid'),
    ('FAILED', 'Failed'),
    ('CANCELLED', 'Cancelled'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SubscriptionOrder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('order_no', models.CharField(editable=False, max_length=32, unique=True)),
                ('delivery_address_id', models.PositiveIntegerField()),
                ('period_days', models.PositiveSmallIntegerField()),
                ('start_date', models.DateField()),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[MinValueValidator(Decimal('0.00'))])),
                ('wallet_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('payable_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('currency', models.CharField(default='INR', max_length=3)),
                ('payment_status', models.CharField(choices=PAYMENT_STATUS_CHOICES, default='PENDING', max_length=20)),
                ('payment_mode', models.CharField(blank=True, choices=[('WALLET', 'Wallet'), ('ONLINE', 'Online'), ('CASH', 'Cash'), ('UPI', 'UPI'), ('BANK', 'Bank Transfer')], max_length=20)),
                ('payment_reference', models.CharField(blank=True, max_length=100)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subscription_orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'subscription_orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['member', 'created_at'], name='subscriptio_member__76ea44_idx'),
                    models.Index(fields=['payment_status'], name='subscriptio_payment_7763d1_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Subscription',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('period_days', models.PositiveSmallIntegerField()),
                ('start_date', models.DateField()),
                ('expiry_date', models.DateField()),
                ('delivery_pattern', models.CharField(choices=[('DAILY', 'Daily'), ('ALTERNATE_DAYS', 'Alternate Days'), ('DAY1_DAY2', 'Day1-Day2'), ('SELECT_DAYS', 'Select Days')], default='DAILY', max_length=20)),
                ('weekdays', models.JSONField(blank=True, default=list)),
                ('quantity', models.PositiveIntegerField(validators=[MinValueValidator(1)])),
                ('alt_quantity', models.PositiveIntegerField(blank=True, null=True, validators=[MinValueValidator(1)])),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('mrp', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('delivery_count', models.PositiveIntegerField(default=0)),
                ('total_quantity', models.PositiveIntegerField(default=0)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('savings', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('payment_status', models.CharField(choices=PAYMENT_STATUS_CHOICES, default='PENDING', max_length=20)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('CANCELLED', 'Cancelled')], default='ACTIVE', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subscriptions', to=settings.AUTH_USER_MODEL)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subscriptions', to='subscriptions.subscriptionorder')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='subscriptions', to='catalog.product')),
                ('variant', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='subscriptions', to='catalog.productvariant')),
            ],
            options={
                'db_table': 'subscriptions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['member', 'status'], name='subscriptio_member__e00774_idx'),
                    models.Index(fields=['expiry_date'], name='subscriptio_expiry__4b1c15_idx'),
                    models.Index(fields=['payment_status'], name='subscriptio_payment_1c2550_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DeliveryScheduleEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('delivery_date', models.DateField()),
                ('quantity', models.PositiveIntegerField(validators=[MinValueValidator(1)])),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('DELIVERED', 'Delivered'), ('NOT_DELIVERED', 'Not Delivered'), ('CANCELLED', 'Cancelled'), ('SKIPPED', 'Skipped')], default='PENDING', max_length=20)),
                ('fulfillment_channel', models.CharField(blank=True, choices=[('STANDARD', 'Standard'), ('INDRAAI', 'Indraai Delivery'), ('AGENT', 'Transfer to Agent')], max_length=20)),
                ('skip_source', models.CharField(blank=True, choices=[('CUSTOMER', 'Skipped by customer'), ('ADMIN', 'Skipped by admin')], max_length=20)),
                ('refund_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('notes', models.CharField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('subscription', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='delivery_entries', to='subscriptions.subscription')),
            ],
            options={
                'verbose_name_plural': 'delivery schedule entries',
                'db_table': 'delivery_schedule_entries',
                'ordering': ['delivery_date'],
                'indexes': [
                    models.Index(fields=['delivery_date', 'status'], name='delivery_sc_deliver_213b89_idx'),
                    models.Index(fields=['subscription', 'status'], name='delivery_sc_subscri_ab1448_idx'),
                ],
                'unique_together': {('subscription', 'delivery_date')},
            },
        ),
    ]
