"""
Read-only check used to gate the feedback form and the create path.
"""
from django.db.models import Exists, OuterRef
from apps.feedback.models import Feedback
from apps.orders.models import OrderDetail, OrderStatus


def can_provide_feedback(user_id: int, product_id: int, order_detail_id: int) -> bool:
    """
    True when the user's order line for this product belongs to a delivered
    order and has no feedback for the product yet.
    """
    already_reviewed = Feedback.objects.filter(
        order_detail=OuterRef('pk'),
        product_id=product_id
    )

    return OrderDetail.objects.filter(
        ~Exists(already_reviewed),
        pk=order_detail_id,
        user_id=user_id,
        product_id=product_id,
        order__statuses__status_name=OrderStatus.DELIVERED,
    ).exists()
