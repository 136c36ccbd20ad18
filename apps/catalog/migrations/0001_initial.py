# Generated manually for the subscriptions backend

import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


def price_field(**kwargs):
    return models.DecimalField(
        blank=True,
        decimal_places=2,
        max_digits=10,
        null=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        **kwargs
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('mrp', price_field(help_text='Maximum retail price (list price)')),
                ('buy_once_price', price_field()),
                ('price_3_day', price_field()),
                ('price_15_day', price_field()),
                ('price_1_month', price_field()),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200, unique=True)),
                ('description', models.TextField(blank=True)),
                ('unit', models.CharField(blank=True, help_text="e.g. '500 ml', '1 kg'", max_length=50)),
                ('is_dairy_product', models.BooleanField(default=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['is_active', 'name'], name='products_is_acti_1ef63b_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductVariant',
            fields=[
                ('mrp', price_field(help_text='Maximum retail price (list price)')),
                ('buy_once_price', price_field()),
                ('price_3_day', price_field()),
                ('price_15_day', price_field()),
                ('price_1_month', price_field()),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text="e.g. '500 ml', 'Pack of 6'", max_length=100)),
                ('is_available', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variants', to='catalog.product')),
            ],
            options={
                'db_table': 'product_variants',
                'ordering': ['product', 'name'],
                'unique_together': {('product', 'name')},
            },
        ),
    ]
