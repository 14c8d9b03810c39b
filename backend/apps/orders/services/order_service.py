"""
Order service - turns a cart into an order and records status events.
"""
from decimal import Decimal
from typing import Optional
from django.db import transaction
from django.core.exceptions import ValidationError
from apps.orders.models import Order, OrderDetail, OrderStatus
from apps.accounts.models import User
import logging

logger = logging.getLogger('orders')


class OrderService:
    """
    Main service for order operations.
    """

    @staticmethod
    @transaction.atomic
    def checkout(user: User, shipping_address: str = "") -> Order:
        """
        Attach every cart line of the user to a new order.

        The order starts with a PENDING status event and its total is the
        sum of the line totals.

        Raises:
            ValidationError if the cart is empty
        """
        lines = list(
            OrderDetail.objects.select_for_update()
            .filter(user=user, order__isnull=True)
        )
        if not lines:
            raise ValidationError("Cart is empty")

        order = Order.objects.create(
            user=user,
            shipping_address=(shipping_address or user.address)[:255],
            total_amount=sum((line.line_total for line in lines), Decimal('0.00'))
        )
        OrderDetail.objects.filter(pk__in=[line.pk for line in lines]).update(order=order)
        OrderStatus.objects.create(order=order, status_name=OrderStatus.PENDING)

        logger.info(f"Order {order.id} placed by {user.email} with {len(lines)} lines")
        return order

    @staticmethod
    @transaction.atomic
    def add_status(order: Order, status_name: str, note: str = "", changed_by: Optional[User] = None) -> OrderStatus:
        """
        Append a status event to the order's history.

        Raises:
            ValidationError for unknown status names
        """
        valid = {choice for choice, _ in OrderStatus.STATUS_CHOICES}
        if status_name not in valid:
            raise ValidationError(f"Unknown order status: {status_name}")

        event = OrderStatus.objects.create(order=order, status_name=status_name, note=note[:255])

        actor = changed_by.email if changed_by else "system"
        logger.info(f"Order {order.id} → {status_name} by {actor}")
        return event
