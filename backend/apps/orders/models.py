"""
Orders models - orders, their status history and order lines.
An order line without an order is a cart line.
"""
from decimal import Decimal
from django.db import models
from django.db.models import Q
from django.core.validators import MinValueValidator
from apps.accounts.models import User
from apps.products.models import Product


class Order(models.Model):
    """
    A committed purchase.
    Progress is tracked by appending OrderStatus events.
    """
    user = models.ForeignKey(
        User,
        on_delete=models.PROTECT,  # Don't delete users with orders
        related_name='orders'
    )
    shipping_address = models.CharField(max_length=255, blank=True)
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        indexes = [
            models.Index(fields=['user', '-created_at']),
        ]

    def __str__(self):
        return f"Order {self.id} - {self.user.email}"

    def is_owner(self, user):
        return self.user_id == getattr(user, 'id', None)

    def has_status(self, status_name):
        return self.statuses.filter(status_name=status_name).exists()

    @property
    def current_status(self):
        latest = self.statuses.order_by('-created_at', '-id').first()
        return latest.status_name if latest else None


class OrderStatus(models.Model):
    """
    One event in an order's status history.
    """
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    SHIPPING = 'SHIPPING'
    DELIVERED = 'DELIVERED'
    CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (SHIPPING, 'Shipping'),
        (DELIVERED, 'Delivered'),
        (CANCELLED, 'Cancelled'),
    ]

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='statuses'
    )
    status_name = models.CharField(max_length=20, choices=STATUS_CHOICES, db_index=True)
    note = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name = 'Order Status'
        verbose_name_plural = 'Order Statuses'
        indexes = [
            models.Index(fields=['order', 'status_name']),
        ]

    def __str__(self):
        return f"{self.order_id}: {self.status_name}"


class OrderDetail(models.Model):
    """
    A product line.
    order is null while the line sits in the user's cart.
    """
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='order_details'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name='order_details'
    )
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='details'
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)]
    )
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Price per unit when the line was added"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name = 'Order Detail'
        verbose_name_plural = 'Order Details'
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'product'],
                condition=Q(order__isnull=True),
                name='unique_cart_line_per_product',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'order']),
        ]

    def __str__(self):
        where = f"order {self.order_id}" if self.order_id else "cart"
        return f"{self.quantity} x {self.product_id} ({where})"

    @property
    def is_cart_line(self):
        return self.order_id is None

    @property
    def line_total(self):
        return self.unit_price * self.quantity
