"""
Catalog models.
"""
from decimal import Decimal
from django.db import models
from django.core.validators import MinValueValidator


class Product(models.Model):
    """
    A catalog item.

    feedback_total and average_rating are derived from the product's
    rating buckets and are only written by the rating aggregator.
    """
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    stock = models.PositiveIntegerField(default=0)
    image = models.URLField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    # Feedback statistics
    feedback_total = models.PositiveIntegerField(
        default=0,
        help_text="Number of feedback records currently attributed to this product"
    )
    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Weighted mean over the product's rating buckets"
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Product'
        verbose_name_plural = 'Products'

    def __str__(self):
        return f"{self.name} - {self.average_rating}★ ({self.feedback_total})"
