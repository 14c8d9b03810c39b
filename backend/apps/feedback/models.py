"""
Feedback models - product reviews and per-product star buckets.
Bucket counts drive the product's feedback_total and average_rating.
"""
from django.db import models
from django.utils import timezone
from apps.accounts.models import User
from apps.orders.models import OrderDetail
from apps.products.models import Product
from common.validators import validate_star_rating

STAR_LEVELS = 5


class RatingCategory(models.Model):
    """
    Running count of feedback carrying one star value for one product.
    Each product has either none or all five of these.
    """
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='rating_categories'
    )
    stars = models.PositiveSmallIntegerField(help_text="Star value, 1 to 5")
    name = models.CharField(max_length=20)
    total_ratings = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['product', 'stars']
        verbose_name = 'Rating Category'
        verbose_name_plural = 'Rating Categories'
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'stars'],
                name='unique_rating_category_per_star',
            ),
        ]

    def __str__(self):
        return f"{self.product_id} {self.name}: {self.total_ratings}"

    @staticmethod
    def label_for(stars):
        return f"{stars} Star"


class Feedback(models.Model):
    """
    One user's review of a product they received on a given order line.
    """
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='feedbacks'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='feedbacks'
    )
    order_detail = models.ForeignKey(
        OrderDetail,
        on_delete=models.CASCADE,
        related_name='feedbacks'
    )
    rating_category = models.ForeignKey(
        RatingCategory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='feedbacks'
    )

    content = models.TextField(max_length=2000, blank=True)
    rating = models.PositiveSmallIntegerField(
        validators=[validate_star_rating],
        help_text="Rating from 1 to 5 stars"
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Feedback'
        verbose_name_plural = 'Feedback'
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'product', 'order_detail'],
                name='unique_feedback_per_order_line',
            ),
        ]
        indexes = [
            models.Index(fields=['product', '-created_at']),
            models.Index(fields=['user', '-created_at']),
        ]

    def __str__(self):
        return f"Feedback by {self.user_id} on product {self.product_id} - {self.rating}★"
