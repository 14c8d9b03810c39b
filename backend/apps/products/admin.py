"""
Product admin configuration.
"""
from django.contrib import admin
from apps.products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'price', 'stock', 'is_active', 'average_rating', 'feedback_total', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'description']
    # Rating statistics are maintained by the feedback pipeline
    readonly_fields = ['feedback_total', 'average_rating', 'created_at', 'updated_at']
