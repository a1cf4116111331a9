from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'sku', 'price', 'is_active', 'reviews_allowed', 'review_count')
    list_filter = ('is_active', 'reviews_allowed')
    search_fields = ('name', 'sku')
    prepopulated_fields = {'slug': ('name',)}
