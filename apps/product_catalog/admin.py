from django.contrib import admin
from django.utils.html import format_html
from django.urls import reverse
from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Admin interface for category management."""

    list_display = ['name', 'product_count', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'description']
    readonly_fields = ['id', 'created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description')
        }),
        ('Metadata', {
            'fields': ('id', 'created_at'),
            'classes': ('collapse',)
        }),
    )

    def product_count(self, obj):
        count = obj.products.count()
        if count > 0:
            app_label = obj._meta.app_label
            url = reverse(f'admin:{app_label}_product_changelist') + f'?category__id__exact={obj.id}'
            return format_html('<a href="{}">{} products</a>', url, count)
        return '0 products'

    product_count.short_description = 'Products'


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for product management."""

    list_display = ['name', 'category', 'price', 'stock', 'stock_status', 'created_at']
    list_filter = ['category', 'created_at']
    search_fields = ['name', 'description']
    list_select_related = ['category']
    readonly_fields = ['id', 'created_at', 'image_preview']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'category')
        }),
        ('Pricing & Inventory', {
            'fields': ('price', 'stock')
        }),
        ('Media', {
            'fields': ('image_url', 'image_preview')
        }),
        ('Metadata', {
            'fields': ('id', 'created_at'),
            'classes': ('collapse',)
        }),
    )

    def stock_status(self, obj):
        if obj.is_in_stock:
            return format_html('<span style="color: green;">{}</span>', 'In stock')
        return format_html('<span style="color: red;">{}</span>', 'Out of stock')

    stock_status.short_description = 'Stock'

    def image_preview(self, obj):
        if obj.image_url:
            return format_html('<img src="{}" style="max-height: 100px;" />', obj.image_url)
        return 'No image'

    image_preview.short_description = 'Preview'
