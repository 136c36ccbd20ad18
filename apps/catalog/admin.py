from django.contrib import admin
from django.utils.html import format_html
from .models import Product, ProductVariant


PRICE_FIELDSET = ('Prices', {
    'fields': ('mrp', 'buy_once_price', 'price_3_day', 'price_15_day', 'price_1_month'),
    'description': 'Empty or zero prices fall back to buy-once price, then MRP.',
})


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ['name', 'is_available', 'mrp', 'buy_once_price', 'price_3_day', 'price_15_day', 'price_1_month']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'unit', 'is_dairy_product', 'active_badge', 'mrp', 'get_variant_count', 'updated_at']
    list_filter = ['is_active', 'is_dairy_product']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProductVariantInline]

    fieldsets = (
        ('Product', {
            'fields': ('name', 'description', 'unit', 'is_dairy_product', 'is_active')
        }),
        PRICE_FIELDSET,
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['activate_products', 'deactivate_products']

    def active_badge(self, obj):
        if obj.is_active:
            return format_html(
                '<span style="background: #5E8E6B; color: white; padding: 3px 8px; '
                'border-radius: 10px; font-size: 11px;">Active</span>'
            )
        return format_html(
            '<span style="background: #9A9A9A; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">Hidden</span>'
        )
    active_badge.short_description = 'Status'
    active_badge.admin_order_field = 'is_active'

    def get_variant_count(self, obj):
        return obj.variants.count()
    get_variant_count.short_description = 'Variants'

    @admin.action(description='Activate selected products')
    def activate_products(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f'{updated} product(s) activated.')

    @admin.action(description='Hide selected products')
    def deactivate_products(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f'{updated} product(s) hidden.')


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'is_available', 'mrp', 'buy_once_price', 'price_3_day', 'price_15_day', 'price_1_month']
    list_filter = ['is_available', 'product']
    search_fields = ['name', 'product__name']
    fieldsets = (
        ('Variant', {
            'fields': ('product', 'name', 'is_available')
        }),
        PRICE_FIELDSET,
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('product')
