"""
Feedback service - create, edit and delete product feedback.
Each operation updates the rating buckets and product statistics in the
same transaction as the feedback row.
"""
from decimal import Decimal
from typing import Dict, List, Optional
from django.db import transaction
from django.utils import timezone
from apps.feedback.exceptions import (
    DuplicateFeedback,
    FeedbackNotFound,
    InvalidRating,
    NotYetDelivered,
    OrderNotFound,
    ProductNotInOrder,
)
from apps.feedback.models import Feedback, RatingCategory, STAR_LEVELS
from apps.feedback.services.eligibility import can_provide_feedback
from apps.feedback.services.rating_aggregator import RatingAggregator, bucket_counts
from apps.orders.models import Order, OrderStatus
from apps.products.models import Product
import logging

logger = logging.getLogger('feedback')


class FeedbackService:
    """
    Service for the feedback lifecycle and feedback queries.
    """

    # ==================== Buckets ====================

    @staticmethod
    def _ensure_buckets(product_id: int) -> List[Optional[RatingCategory]]:
        """
        Create whichever of the product's five buckets are missing and
        return them locked, indexed by stars - 1.

        Creation is an insert-or-ignore on (product, stars), so two
        requests racing to create the same buckets cannot duplicate them,
        and a partial set is completed rather than left short.
        """
        if RatingCategory.objects.filter(product_id=product_id).count() < STAR_LEVELS:
            RatingCategory.objects.bulk_create(
                [
                    RatingCategory(
                        product_id=product_id,
                        stars=stars,
                        name=RatingCategory.label_for(stars),
                        total_ratings=0
                    )
                    for stars in range(1, STAR_LEVELS + 1)
                ],
                ignore_conflicts=True
            )
            logger.info(f"Rating buckets ensured for product {product_id}")

        return FeedbackService._locked_buckets(product_id)

    @staticmethod
    def _locked_buckets(product_id: int) -> List[Optional[RatingCategory]]:
        buckets: List[Optional[RatingCategory]] = [None] * STAR_LEVELS
        for bucket in RatingCategory.objects.select_for_update().filter(product_id=product_id):
            if 1 <= bucket.stars <= STAR_LEVELS:
                buckets[bucket.stars - 1] = bucket
        return buckets

    @staticmethod
    def _bucket_for(buckets: List[Optional[RatingCategory]], rating) -> Optional[RatingCategory]:
        if isinstance(rating, bool) or not isinstance(rating, int):
            return None
        if not 1 <= rating <= len(buckets):
            return None
        return buckets[rating - 1]

    @staticmethod
    def _decrement(bucket: RatingCategory) -> None:
        bucket.total_ratings = max(bucket.total_ratings - 1, 0)
        bucket.save(update_fields=['total_ratings'])

    @staticmethod
    def _increment(bucket: RatingCategory) -> None:
        bucket.total_ratings += 1
        bucket.save(update_fields=['total_ratings'])

    # ==================== Lifecycle ====================

    @staticmethod
    @transaction.atomic
    def create_feedback(
        user_id: int,
        order_id: int,
        product_id: int,
        content: str,
        rating: int
    ) -> Feedback:
        """
        Create feedback for a product on one of the user's delivered orders.

        Checks, in order:
        - the order exists and belongs to the user
        - the order's history contains DELIVERED
        - the order has a line for the product
        - the rating is 1-5

        Raises:
            OrderNotFound, NotYetDelivered, ProductNotInOrder,
            InvalidRating, DuplicateFeedback

        Returns:
            Created Feedback
        """
        order = (
            Order.objects.prefetch_related('statuses', 'details')
            .filter(pk=order_id, user_id=user_id)
            .first()
        )
        if order is None:
            raise OrderNotFound()

        if not any(s.status_name == OrderStatus.DELIVERED for s in order.statuses.all()):
            raise NotYetDelivered()

        order_detail = next(
            (d for d in order.details.all() if d.product_id == product_id),
            None
        )
        if order_detail is None:
            raise ProductNotInOrder(f"Product with ID {product_id} not found in the order.")

        buckets = FeedbackService._ensure_buckets(product_id)

        bucket = FeedbackService._bucket_for(buckets, rating)
        if bucket is None:
            raise InvalidRating()

        if Feedback.objects.filter(
            user_id=user_id,
            product_id=product_id,
            order_detail=order_detail
        ).exists():
            raise DuplicateFeedback()

        feedback = Feedback.objects.create(
            user_id=user_id,
            product_id=product_id,
            order_detail=order_detail,
            content=content,
            rating=rating,
            created_at=timezone.now(),
            rating_category=bucket
        )

        FeedbackService._increment(bucket)
        RatingAggregator.recompute(product_id, rating, is_new_feedback=True)

        logger.info(
            f"Feedback {feedback.id} created by user {user_id} "
            f"for product {product_id} ({rating}★)"
        )
        return feedback

    @staticmethod
    @transaction.atomic
    def update_feedback(feedback_id: int, content: str, new_rating: int) -> Feedback:
        """
        Edit a feedback's content and rating.

        When the rating changes one count moves from the old bucket to the
        new one. If the product has no bucket for the new rating the bucket
        reference is left as it was.

        Raises:
            FeedbackNotFound

        Returns:
            Updated Feedback
        """
        feedback = Feedback.objects.select_for_update().filter(pk=feedback_id).first()
        if feedback is None:
            raise FeedbackNotFound()

        old_rating = feedback.rating
        feedback.content = content
        feedback.rating = new_rating

        if new_rating != old_rating:
            buckets = FeedbackService._locked_buckets(feedback.product_id)

            old_bucket = next(
                (b for b in buckets if b is not None and b.pk == feedback.rating_category_id),
                None
            )
            if old_bucket is not None:
                FeedbackService._decrement(old_bucket)

            new_bucket = FeedbackService._bucket_for(buckets, new_rating)
            if new_bucket is not None:
                FeedbackService._increment(new_bucket)
                feedback.rating_category = new_bucket
            else:
                logger.warning(
                    f"Feedback {feedback.id}: no bucket for rating {new_rating}, "
                    f"keeping bucket {feedback.rating_category_id}"
                )

        feedback.save()
        RatingAggregator.recompute(
            feedback.product_id,
            new_rating,
            is_new_feedback=False,
            old_rating=old_rating
        )

        logger.info(f"Feedback {feedback.id} updated ({old_rating}★ → {new_rating}★)")
        return feedback

    @staticmethod
    @transaction.atomic
    def delete_feedback(feedback_id: int) -> None:
        """
        Delete a feedback and roll its rating out of the product statistics.

        Raises:
            FeedbackNotFound
        """
        feedback = Feedback.objects.select_for_update().filter(pk=feedback_id).first()
        if feedback is None:
            raise FeedbackNotFound()

        if feedback.rating_category_id is not None:
            bucket = (
                RatingCategory.objects.select_for_update()
                .filter(pk=feedback.rating_category_id)
                .first()
            )
            if bucket is not None:
                FeedbackService._decrement(bucket)

        product_id = feedback.product_id
        old_rating = feedback.rating
        feedback.delete()

        RatingAggregator.recompute(product_id, 0, is_new_feedback=False, old_rating=old_rating)

        logger.info(f"Feedback {feedback_id} deleted (product {product_id})")

    # ==================== Queries ====================

    @staticmethod
    def can_provide_feedback(user_id: int, product_id: int, order_detail_id: int) -> bool:
        return can_provide_feedback(user_id, product_id, order_detail_id)

    @staticmethod
    def get_feedback(feedback_id: int) -> Optional[Feedback]:
        return (
            Feedback.objects.select_related('user', 'product')
            .filter(pk=feedback_id)
            .first()
        )

    @staticmethod
    def get_product_feedbacks(product_id: int):
        """Feedback for a product, newest first."""
        return Feedback.objects.filter(
            product_id=product_id
        ).select_related('user').order_by('-created_at')

    @staticmethod
    def get_user_feedbacks(user_id: int):
        return Feedback.objects.filter(
            user_id=user_id
        ).select_related('product').order_by('-created_at')

    @staticmethod
    def get_recent_feedbacks(count: int):
        return Feedback.objects.select_related(
            'user', 'product'
        ).order_by('-created_at')[:count]

    @staticmethod
    def get_average_rating(product_id: int) -> Decimal:
        average = Product.objects.filter(pk=product_id).values_list('average_rating', flat=True).first()
        return average if average is not None else Decimal('0')

    @staticmethod
    def get_rating_breakdown(product_id: int) -> Dict[int, int]:
        """Bucket counts keyed by star value; zeros when no buckets exist."""
        return {
            stars: count
            for stars, count in enumerate(bucket_counts(product_id), start=1)
        }
