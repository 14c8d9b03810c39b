"""
Order admin configuration.
"""
from django.contrib import admin
from apps.orders.models import Order, OrderStatus, OrderDetail


class OrderStatusInline(admin.TabularInline):
    model = OrderStatus
    extra = 1
    readonly_fields = ['created_at']


class OrderDetailInline(admin.TabularInline):
    model = OrderDetail
    extra = 0
    readonly_fields = ['user', 'product', 'quantity', 'unit_price', 'created_at']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'total_amount', 'current_status', 'created_at']
    list_filter = ['created_at']
    search_fields = ['id', 'user__email', 'user__phone_number']
    readonly_fields = ['user', 'total_amount', 'created_at']
    inlines = [OrderStatusInline, OrderDetailInline]

    def has_add_permission(self, request):
        return False


@admin.register(OrderDetail)
class OrderDetailAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'product', 'order', 'quantity', 'unit_price', 'created_at']
    list_filter = ['created_at']
    search_fields = ['user__email', 'product__name']
    readonly_fields = ['user', 'product', 'order', 'quantity', 'unit_price', 'created_at']

    def has_add_permission(self, request):
        return False
