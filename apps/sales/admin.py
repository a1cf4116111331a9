from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'user', 'email', 'status', 'total', 'created_at')
    list_filter = ('status',)
    search_fields = ('order_number', 'email', 'user__email')
    readonly_fields = ('order_number',)
    inlines = [OrderItemInline]
