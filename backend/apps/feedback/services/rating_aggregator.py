"""
Rating aggregation - keeps Product.feedback_total and
Product.average_rating in step with the product's rating buckets.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence
from django.db import transaction
from apps.feedback.models import RatingCategory, STAR_LEVELS
from apps.products.models import Product
import logging

logger = logging.getLogger('feedback')


def weighted_average(counts: Sequence[int]) -> Decimal:
    """
    Mean star value for a five-slot count array.

    counts[i] is the number of ratings with i + 1 stars. Returns 0.00 when
    there are no ratings.
    """
    total = sum(counts)
    if total == 0:
        return Decimal('0.00')

    weighted = sum(stars * count for stars, count in enumerate(counts, start=1))
    return (Decimal(weighted) / Decimal(total)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def bucket_counts(product_id: int) -> List[int]:
    """Current bucket counts for a product, index = stars - 1."""
    counts = [0] * STAR_LEVELS
    rows = RatingCategory.objects.filter(product_id=product_id).values_list('stars', 'total_ratings')
    for stars, total in rows:
        if 1 <= stars <= STAR_LEVELS:
            counts[stars - 1] = total
    return counts


class RatingAggregator:
    """
    Single entry point for writing a product's rating statistics.
    """

    @staticmethod
    @transaction.atomic
    def recompute(
        product_id: int,
        new_rating: int,
        is_new_feedback: bool,
        old_rating: int = 0
    ) -> Optional[Product]:
        """
        Adjust feedback_total for the change being made and re-derive
        average_rating from the bucket counts.

        - new feedback: feedback_total + 1
        - deletion (new_rating == 0): feedback_total - 1, never below 0
        - edit: feedback_total unchanged

        The product row is written inside the caller's transaction. A
        missing product is ignored.

        Args:
            product_id: Product whose statistics change
            new_rating: Rating after the change, 0 for a deletion
            is_new_feedback: True when a feedback row was just added
            old_rating: Rating before the change (informational)

        Returns:
            Updated Product, or None if it does not exist
        """
        product = Product.objects.select_for_update().filter(pk=product_id).first()
        if product is None:
            logger.warning(f"Rating recompute skipped: product {product_id} does not exist")
            return None

        if is_new_feedback:
            product.feedback_total += 1
        elif new_rating == 0:
            product.feedback_total = max(product.feedback_total - 1, 0)

        product.average_rating = weighted_average(bucket_counts(product_id))
        product.save(update_fields=['feedback_total', 'average_rating', 'updated_at'])

        logger.debug(
            f"Product {product_id} stats: total={product.feedback_total} "
            f"avg={product.average_rating} (rating {old_rating} → {new_rating})"
        )
        return product
