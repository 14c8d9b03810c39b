"""
Order and cart serializers.
"""
from rest_framework import serializers
from apps.orders.models import Order, OrderStatus, OrderDetail


class OrderDetailSerializer(serializers.ModelSerializer):
    """Serializer for a cart or order line."""
    product_id = serializers.IntegerField(source='product.id', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = OrderDetail
        fields = [
            'id', 'product_id', 'product_name', 'quantity',
            'unit_price', 'line_total', 'created_at'
        ]
        read_only_fields = fields


class AddToCartSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartLineSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class CheckoutSerializer(serializers.Serializer):
    shipping_address = serializers.CharField(max_length=255, required=False, allow_blank=True)


class OrderStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatus
        fields = ['id', 'status_name', 'note', 'created_at']
        read_only_fields = ['id', 'created_at']


class OrderSerializer(serializers.ModelSerializer):
    """Order with its lines and status history."""
    details = OrderDetailSerializer(many=True, read_only=True)
    statuses = OrderStatusSerializer(many=True, read_only=True)
    current_status = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'shipping_address', 'total_amount', 'current_status',
            'statuses', 'details', 'created_at'
        ]
        read_only_fields = fields
