"""
Cart service - cart lines are order details that have no order yet.
"""
from django.db import transaction
from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from apps.orders.models import OrderDetail
from apps.products.models import Product
from apps.accounts.models import User
import logging

logger = logging.getLogger('orders')


class CartService:
    """
    Add, change and remove the caller's cart lines.
    """

    @staticmethod
    def get_cart(user: User):
        """Return the user's cart lines with their products."""
        return OrderDetail.objects.filter(
            user=user,
            order__isnull=True
        ).select_related('product')

    @staticmethod
    def get_cart_line(user: User, product_id: int):
        return OrderDetail.objects.filter(
            user=user,
            product_id=product_id,
            order__isnull=True
        ).first()

    @staticmethod
    @transaction.atomic
    def add_to_cart(user: User, product_id: int, quantity: int = 1) -> OrderDetail:
        """
        Add a product to the cart.
        An existing line for the same product has its quantity increased.
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        product = get_object_or_404(Product, pk=product_id, is_active=True)

        line = (
            OrderDetail.objects.select_for_update()
            .filter(user=user, product=product, order__isnull=True)
            .first()
        )
        if line is None:
            line = OrderDetail.objects.create(
                user=user,
                product=product,
                quantity=quantity,
                unit_price=product.price
            )
        else:
            line.quantity += quantity
            line.unit_price = product.price
            line.save(update_fields=['quantity', 'unit_price'])

        logger.info(f"Cart: {user.email} +{quantity} x product {product.id}")
        return line

    @staticmethod
    @transaction.atomic
    def update_quantity(user: User, product_id: int, quantity: int) -> OrderDetail:
        """Set the quantity of an existing cart line."""
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        line = get_object_or_404(
            OrderDetail.objects.select_for_update(),
            user=user,
            product_id=product_id,
            order__isnull=True
        )
        line.quantity = quantity
        line.save(update_fields=['quantity'])
        return line

    @staticmethod
    def remove_from_cart(user: User, product_id: int) -> None:
        line = get_object_or_404(
            OrderDetail,
            user=user,
            product_id=product_id,
            order__isnull=True
        )
        line.delete()
        logger.info(f"Cart: {user.email} removed product {product_id}")
