"""
Management command to create sample data for testing the API.

Usage:
    python manage.py create_sample_data

This creates:
- 4 users (admin, asha, ravi, meera)
- Wallets with opening top-ups
- Dairy and grocery products, some with variants and tiered prices
- Subscription orders with their delivery schedules
- A skipped (and refunded) delivery
"""

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from decimal import Decimal
from datetime import timedelta

from apps.accounts.models import User
from apps.catalog.models import Product, ProductVariant
from apps.wallet.models import Wallet, WalletTransaction
from apps.wallet.services import credit_wallet
from apps.subscriptions.models import (
    DeliveryPattern,
    DeliveryScheduleEntry,
    PaymentMode,
    Subscription,
    SubscriptionOrder,
)
from apps.subscriptions.services import (
    create_subscription_order,
    record_payment,
    skip_delivery,
)


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        self.create_wallets(users)
        catalog = self.create_catalog()
        self.create_subscriptions(users, catalog)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (superuser, staff)')
        self.stdout.write('  asha@example.com / password123')
        self.stdout.write('  ravi@example.com / password123')
        self.stdout.write('  meera@example.com / password123')

    def clear_data(self):
        """Clear all data from the database."""
        DeliveryScheduleEntry.objects.all().delete()
        Subscription.objects.all().delete()
        SubscriptionOrder.objects.all().delete()
        WalletTransaction.objects.all().delete()
        Wallet.objects.all().delete()
        ProductVariant.objects.all().delete()
        Product.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='admin@example.com').delete()

    def create_users(self):
        """Create test users."""
        self.stdout.write('  Creating users...')

        admin, _ = User.objects.get_or_create(
            email='admin@example.com',
            defaults={
                'display_name': 'Admin User',
                'is_staff': True,
                'is_superuser': True,
            }
        )
        admin.set_password('admin123')
        admin.save()

        members = {}
        for key, name, mobile in [
            ('asha', 'Asha Kulkarni', '9820000001'),
            ('ravi', 'Ravi Menon', '9820000002'),
            ('meera', 'Meera Shah', '9820000003'),
        ]:
            user, _ = User.objects.get_or_create(
                email=f'{key}@example.com',
                defaults={'display_name': name, 'mobile': mobile}
            )
            user.set_password('password123')
            user.save()
            members[key] = user

        return {'admin': admin, **members}

    def create_wallets(self, users):
        """Top up member wallets."""
        self.stdout.write('  Creating wallets...')

        for key, amount in [('asha', '5000.00'), ('ravi', '150.00'), ('meera', '0')]:
            amount = Decimal(amount)
            if amount > 0:
                credit_wallet(member=users[key], amount=amount, reference='SAMPLE-TOPUP', note='Opening balance')
            else:
                Wallet.objects.get_or_create(member=users[key])

    def create_catalog(self):
        """Create products and variants."""
        self.stdout.write('  Creating catalog...')

        products_data = [
            {
                'name': 'A2 Cow Milk',
                'unit': 'pouch',
                'description': 'Farm-fresh A2 cow milk delivered every morning.',
                'variants': [
                    ('500 ml', '40.00', '38.00', '37.00', '35.00', '33.00'),
                    ('1 L', '78.00', '75.00', '72.00', '68.00', '64.00'),
                ],
            },
            {
                'name': 'Buffalo Milk',
                'unit': 'pouch',
                'description': 'Rich buffalo milk, high fat.',
                'variants': [
                    ('500 ml', '45.00', '44.00', None, '42.00', '40.00'),
                ],
            },
            {
                'name': 'Fresh Curd',
                'unit': '400 g',
                'description': 'Set curd made from A2 milk.',
                'prices': ('60.00', '55.00', None, '52.00', '50.00'),
            },
            {
                'name': 'Paneer',
                'unit': '200 g',
                'description': 'Soft malai paneer.',
                'prices': ('110.00', '100.00', None, None, '95.00'),
            },
            {
                'name': 'Desi Ghee',
                'unit': '500 ml',
                'description': 'Bilona churned ghee.',
                'is_dairy_product': False,
                'prices': ('650.00', None, None, None, None),
            },
        ]

        price_keys = ['mrp', 'buy_once_price', 'price_3_day', 'price_15_day', 'price_1_month']

        def as_prices(values):
            return {key: Decimal(value) if value else None for key, value in zip(price_keys, values)}

        catalog = {}
        for data in products_data:
            product, _ = Product.objects.update_or_create(
                name=data['name'],
                defaults={
                    'unit': data['unit'],
                    'description': data['description'],
                    'is_dairy_product': data.get('is_dairy_product', True),
                    **as_prices(data.get('prices', (None,) * 5)),
                }
            )
            variants = {}
            for name, *prices in data.get('variants', []):
                variant, _ = ProductVariant.objects.update_or_create(
                    product=product,
                    name=name,
                    defaults=as_prices(prices),
                )
                variants[name] = variant
            catalog[data['name']] = (product, variants)

        return catalog

    def create_subscriptions(self, users, catalog):
        """Check out a few subscriptions through the service layer."""
        self.stdout.write('  Creating subscriptions...')

        today = timezone.localdate()
        start = today + timedelta(days=settings.SUBSCRIPTION_MIN_LEAD_DAYS)
        cow_milk, cow_variants = catalog['A2 Cow Milk']
        buffalo_milk, buffalo_variants = catalog['Buffalo Milk']
        curd, _ = catalog['Fresh Curd']
        paneer, _ = catalog['Paneer']

        # Asha: monthly milk + curd, fully paid from the wallet
        asha_order = create_subscription_order(
            member=users['asha'],
            selections=[
                {
                    'product_id': cow_milk.id,
                    'variant_id': cow_variants['1 L'].id,
                    'delivery_pattern': DeliveryPattern.DAY1_DAY2,
                    'quantity': 1,
                    'alt_quantity': 2,
                },
                {
                    'product_id': curd.id,
                    'delivery_pattern': DeliveryPattern.SELECT_DAYS,
                    'quantity': 1,
                    'weekdays': ['mon', 'wed', 'fri'],
                },
            ],
            period_days=30,
            start_date=start,
            delivery_address_id=101,
            use_wallet=True,
            today=today,
        )

        # Ravi: 15-day alternate-day buffalo milk, wallet covers part
        ravi_order = create_subscription_order(
            member=users['ravi'],
            selections=[{
                'product_id': buffalo_milk.id,
                'variant_id': buffalo_variants['500 ml'].id,
                'delivery_pattern': DeliveryPattern.ALTERNATE_DAYS,
                'quantity': 2,
            }],
            period_days=15,
            start_date=start,
            delivery_address_id=102,
            use_wallet=True,
            today=today,
        )
        record_payment(order_id=ravi_order.id, payment_mode=PaymentMode.UPI, payment_reference='UPI-SAMPLE-0001')

        # Meera: 3-day trial of paneer, unpaid
        create_subscription_order(
            member=users['meera'],
            selections=[{'product_id': paneer.id, 'quantity': 1}],
            period_days=3,
            start_date=start,
            delivery_address_id=103,
            use_wallet=False,
            today=today,
        )

        # Asha skips the last curd delivery (refunded to wallet)
        last_curd = DeliveryScheduleEntry.objects.filter(
            subscription__order=asha_order,
            subscription__product=curd,
        ).order_by('-delivery_date').first()
        skip_delivery(entry_id=last_curd.id, member=users['asha'], today=today)

        self.stdout.write(f'    {SubscriptionOrder.objects.count()} orders, '
                          f'{DeliveryScheduleEntry.objects.count()} delivery entries')
