"""
Product serializers.
"""
from rest_framework import serializers
from apps.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read-only catalog view of a product with its rating statistics."""

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'price', 'stock', 'image',
            'feedback_total', 'average_rating', 'created_at'
        ]
        read_only_fields = fields
