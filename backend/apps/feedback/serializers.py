"""
Feedback serializers.
"""
from rest_framework import serializers
from apps.feedback.models import Feedback


class FeedbackSerializer(serializers.ModelSerializer):
    """Serializer for feedback."""
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    user_full_name = serializers.CharField(source='user.full_name', read_only=True)
    product_id = serializers.IntegerField(source='product.id', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    order_detail_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Feedback
        fields = [
            'id', 'user_id', 'user_full_name', 'product_id', 'product_name',
            'order_detail_id', 'content', 'rating', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class CreateFeedbackSerializer(serializers.Serializer):
    """Serializer for creating feedback."""
    order_id = serializers.IntegerField()
    product_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    content = serializers.CharField(
        max_length=2000,
        required=False,
        allow_blank=True,
        default=''
    )


class UpdateFeedbackSerializer(serializers.Serializer):
    """Serializer for editing feedback."""
    rating = serializers.IntegerField(min_value=1, max_value=5)
    content = serializers.CharField(
        max_length=2000,
        required=False,
        allow_blank=True,
        default=''
    )


class EligibilityQuerySerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    order_detail_id = serializers.IntegerField()


class ProductRatingSerializer(serializers.Serializer):
    """Rating statistics for one product."""
    product_id = serializers.IntegerField()
    feedback_total = serializers.IntegerField()
    average_rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    breakdown = serializers.DictField(child=serializers.IntegerField())
