"""
Tests for the Feedback app.
Covers the lifecycle service, rating aggregation, eligibility and the API.
"""
from decimal import Decimal
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status
from apps.feedback.exceptions import (
    DuplicateFeedback,
    FeedbackNotFound,
    InvalidRating,
    NotYetDelivered,
    OrderNotFound,
    ProductNotInOrder,
)
from apps.feedback.models import Feedback, RatingCategory
from apps.feedback.services.feedback_service import FeedbackService
from apps.feedback.services.rating_aggregator import RatingAggregator, weighted_average
from apps.orders.models import OrderStatus
from apps.orders.services.cart_service import CartService
from apps.orders.services.order_service import OrderService
from apps.products.models import Product
from common.models import AdminActionLog

User = get_user_model()


def place_order(user, *products, delivered=True):
    """Buy one of each product and optionally mark the order delivered."""
    for product in products:
        CartService.add_to_cart(user, product.id, 1)
    order = OrderService.checkout(user)
    if delivered:
        OrderService.add_status(order, OrderStatus.DELIVERED)
    return order


def counts_for(product):
    return list(
        RatingCategory.objects.filter(product=product)
        .order_by('stars')
        .values_list('total_ratings', flat=True)
    )


class FeedbackTestMixin:

    def setUp(self):
        self.customer = User.objects.create_user(
            email='customer@test.com',
            password='testpass123',
            phone_number='0911111111'
        )
        self.other = User.objects.create_user(
            email='other@test.com',
            password='testpass123',
            phone_number='0922222222'
        )
        self.staff = User.objects.create_user(
            email='staff@test.com',
            password='testpass123',
            role=User.Role.STAFF
        )
        self.product = Product.objects.create(name='Desk Lamp', price=Decimal('25.00'), stock=10)
        self.mug = Product.objects.create(name='Mug', price=Decimal('8.50'), stock=10)


class RatingAggregatorTestCase(FeedbackTestMixin, TestCase):
    """Test the weighted average and product statistics."""

    def test_weighted_average_empty(self):
        self.assertEqual(weighted_average([0, 0, 0, 0, 0]), Decimal('0.00'))

    def test_weighted_average_rounds_to_two_places(self):
        # (5 + 4 + 4) / 3 = 4.333...
        self.assertEqual(weighted_average([0, 0, 0, 2, 1]), Decimal('4.33'))
        # (1 + 2) / 2 = 1.5
        self.assertEqual(weighted_average([1, 1, 0, 0, 0]), Decimal('1.50'))

    def test_missing_product_is_ignored(self):
        self.assertIsNone(RatingAggregator.recompute(999999, 5, is_new_feedback=True))

    def test_edit_recompute_is_idempotent(self):
        order = place_order(self.customer, self.product)
        FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, 'Nice', 4)

        first = RatingAggregator.recompute(self.product.id, 4, is_new_feedback=False, old_rating=4)
        second = RatingAggregator.recompute(self.product.id, 4, is_new_feedback=False, old_rating=4)

        self.assertEqual(first.feedback_total, second.feedback_total)
        self.assertEqual(first.average_rating, second.average_rating)
        self.assertEqual(second.feedback_total, 1)
        self.assertEqual(second.average_rating, Decimal('4.00'))

    def test_deletion_never_goes_below_zero(self):
        product = RatingAggregator.recompute(self.product.id, 0, is_new_feedback=False)

        self.assertEqual(product.feedback_total, 0)
        self.assertEqual(product.average_rating, Decimal('0.00'))


class FeedbackLifecycleTestCase(FeedbackTestMixin, TestCase):
    """Test create, update and delete through the service."""

    def test_create_update_delete_scenario(self):
        order = place_order(self.customer, self.product)

        feedback = FeedbackService.create_feedback(
            self.customer.id, order.id, self.product.id, 'Bright and sturdy', 5
        )
        self.product.refresh_from_db()
        self.assertEqual(counts_for(self.product), [0, 0, 0, 0, 1])
        self.assertEqual(self.product.feedback_total, 1)
        self.assertEqual(self.product.average_rating, Decimal('5.00'))
        self.assertEqual(feedback.rating_category.stars, 5)

        feedback = FeedbackService.update_feedback(feedback.id, 'Flickers a bit', 2)
        self.product.refresh_from_db()
        self.assertEqual(counts_for(self.product), [0, 1, 0, 0, 0])
        self.assertEqual(self.product.feedback_total, 1)
        self.assertEqual(self.product.average_rating, Decimal('2.00'))
        self.assertEqual(feedback.rating_category.stars, 2)
        self.assertEqual(feedback.content, 'Flickers a bit')

        FeedbackService.delete_feedback(feedback.id)
        self.product.refresh_from_db()
        self.assertEqual(counts_for(self.product), [0, 0, 0, 0, 0])
        self.assertEqual(self.product.feedback_total, 0)
        self.assertEqual(self.product.average_rating, Decimal('0.00'))
        self.assertFalse(Feedback.objects.exists())

    def test_buckets_created_once_with_labels(self):
        order = place_order(self.customer, self.product)
        FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 3)

        names = list(
            RatingCategory.objects.filter(product=self.product)
            .order_by('stars')
            .values_list('name', flat=True)
        )
        self.assertEqual(names, ['1 Star', '2 Star', '3 Star', '4 Star', '5 Star'])

        second_order = place_order(self.customer, self.product)
        FeedbackService.create_feedback(self.customer.id, second_order.id, self.product.id, '', 4)
        self.assertEqual(RatingCategory.objects.filter(product=self.product).count(), 5)

    def test_bucket_counts_match_feedback_total(self):
        orders = [place_order(self.customer, self.product) for _ in range(3)]
        other_order = place_order(self.other, self.product)

        created = [
            FeedbackService.create_feedback(self.customer.id, orders[0].id, self.product.id, '', 5),
            FeedbackService.create_feedback(self.customer.id, orders[1].id, self.product.id, '', 3),
            FeedbackService.create_feedback(self.customer.id, orders[2].id, self.product.id, '', 3),
            FeedbackService.create_feedback(self.other.id, other_order.id, self.product.id, '', 1),
        ]
        FeedbackService.update_feedback(created[1].id, '', 4)
        FeedbackService.delete_feedback(created[3].id)

        self.product.refresh_from_db()
        self.assertEqual(sum(counts_for(self.product)), self.product.feedback_total)
        self.assertEqual(self.product.feedback_total, Feedback.objects.filter(product=self.product).count())
        # 5, 4, 3
        self.assertEqual(self.product.average_rating, Decimal('4.00'))

    def test_create_rejects_undelivered_order(self):
        order = place_order(self.customer, self.product, delivered=False)

        with self.assertRaises(NotYetDelivered):
            FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 5)

        self.product.refresh_from_db()
        self.assertEqual(self.product.feedback_total, 0)
        self.assertEqual(self.product.average_rating, Decimal('0.00'))
        self.assertFalse(RatingCategory.objects.filter(product=self.product).exists())
        self.assertFalse(Feedback.objects.exists())

    def test_create_rejects_unknown_order(self):
        with self.assertRaises(OrderNotFound):
            FeedbackService.create_feedback(self.customer.id, 999999, self.product.id, '', 5)

    def test_create_rejects_someone_elses_order(self):
        order = place_order(self.other, self.product)

        with self.assertRaises(OrderNotFound):
            FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 5)

    def test_create_rejects_product_not_in_order(self):
        order = place_order(self.customer, self.product)

        with self.assertRaises(ProductNotInOrder):
            FeedbackService.create_feedback(self.customer.id, order.id, self.mug.id, '', 5)

    def test_create_rejects_out_of_range_rating(self):
        order = place_order(self.customer, self.product)

        for rating in (0, 6):
            with self.assertRaises(InvalidRating):
                FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', rating)

        # The bucket insert is rolled back with the failed create
        self.assertFalse(RatingCategory.objects.filter(product=self.product).exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.feedback_total, 0)

    def test_create_rejects_second_feedback_on_same_line(self):
        order = place_order(self.customer, self.product)
        FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 5)

        with self.assertRaises(DuplicateFeedback):
            FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 1)

        self.product.refresh_from_db()
        self.assertEqual(self.product.feedback_total, 1)
        self.assertEqual(counts_for(self.product), [0, 0, 0, 0, 1])

    def test_update_and_delete_unknown_feedback(self):
        with self.assertRaises(FeedbackNotFound):
            FeedbackService.update_feedback(999999, 'x', 3)
        with self.assertRaises(FeedbackNotFound):
            FeedbackService.delete_feedback(999999)

    def test_update_same_rating_only_changes_content(self):
        order = place_order(self.customer, self.product)
        feedback = FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, 'ok', 4)

        FeedbackService.update_feedback(feedback.id, 'still ok', 4)

        feedback.refresh_from_db()
        self.product.refresh_from_db()
        self.assertEqual(feedback.content, 'still ok')
        self.assertEqual(counts_for(self.product), [0, 0, 0, 1, 0])
        self.assertEqual(self.product.feedback_total, 1)

    def test_update_to_rating_without_bucket_keeps_reference(self):
        order = place_order(self.customer, self.product)
        feedback = FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, 'ok', 5)
        five_star = feedback.rating_category

        feedback = FeedbackService.update_feedback(feedback.id, '', 7)

        feedback.refresh_from_db()
        self.product.refresh_from_db()
        # Old bucket loses its count, nothing gains it, the reference stays
        self.assertEqual(counts_for(self.product), [0, 0, 0, 0, 0])
        self.assertEqual(feedback.rating_category_id, five_star.id)
        self.assertEqual(feedback.rating, 7)
        self.assertEqual(self.product.feedback_total, 1)
        self.assertEqual(self.product.average_rating, Decimal('0.00'))

    def test_create_completes_partial_bucket_set(self):
        for stars in (1, 2, 3):
            RatingCategory.objects.create(
                product=self.product,
                stars=stars,
                name=RatingCategory.label_for(stars)
            )
        order = place_order(self.customer, self.product)

        feedback = FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 5)

        self.assertEqual(feedback.rating_category.stars, 5)
        self.assertEqual(counts_for(self.product), [0, 0, 0, 0, 1])

    def test_decrement_clamps_at_zero(self):
        order = place_order(self.customer, self.product)
        feedback = FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 2)
        RatingCategory.objects.filter(product=self.product).update(total_ratings=0)

        FeedbackService.delete_feedback(feedback.id)

        self.assertEqual(counts_for(self.product), [0, 0, 0, 0, 0])

    def test_rating_breakdown(self):
        self.assertEqual(
            FeedbackService.get_rating_breakdown(self.product.id),
            {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
        )

        order = place_order(self.customer, self.product)
        FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 4)

        self.assertEqual(FeedbackService.get_rating_breakdown(self.product.id)[4], 1)
        self.assertEqual(FeedbackService.get_average_rating(self.product.id), Decimal('4.00'))


class EligibilityTestCase(FeedbackTestMixin, TestCase):
    """Test can_provide_feedback."""

    def test_eligible_after_delivery_until_feedback_exists(self):
        order = place_order(self.customer, self.product)
        line = order.details.get()

        self.assertTrue(FeedbackService.can_provide_feedback(self.customer.id, self.product.id, line.id))

        FeedbackService.create_feedback(self.customer.id, order.id, self.product.id, '', 5)

        self.assertFalse(FeedbackService.can_provide_feedback(self.customer.id, self.product.id, line.id))

    def test_not_eligible_before_delivery(self):
        order = place_order(self.customer, self.product, delivered=False)
        line = order.details.get()

        self.assertFalse(FeedbackService.can_provide_feedback(self.customer.id, self.product.id, line.id))

        OrderService.add_status(order, OrderStatus.DELIVERED)

        self.assertTrue(FeedbackService.can_provide_feedback(self.customer.id, self.product.id, line.id))

    def test_not_eligible_for_mismatched_identifiers(self):
        order = place_order(self.customer, self.product)
        line = order.details.get()

        self.assertFalse(FeedbackService.can_provide_feedback(self.other.id, self.product.id, line.id))
        self.assertFalse(FeedbackService.can_provide_feedback(self.customer.id, self.mug.id, line.id))
        self.assertFalse(FeedbackService.can_provide_feedback(self.customer.id, self.product.id, 999999))


class FeedbackAPITestCase(FeedbackTestMixin, TestCase):
    """Test Feedback API endpoints."""

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.order = place_order(self.customer, self.product)

    def _create(self, rating=5, content='Great'):
        return FeedbackService.create_feedback(
            self.customer.id, self.order.id, self.product.id, content, rating
        )

    def test_create_feedback_success(self):
        self.client.force_authenticate(user=self.customer)

        response = self.client.post('/api/feedback/', {
            'order_id': self.order.id,
            'product_id': self.product.id,
            'rating': 5,
            'content': 'Great lamp'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['rating'], 5)
        self.assertEqual(response.data['product_id'], self.product.id)
        self.assertEqual(response.data['order_detail_id'], self.order.details.get().id)

    def test_create_feedback_requires_authentication(self):
        response = self.client.post('/api/feedback/', {
            'order_id': self.order.id,
            'product_id': self.product.id,
            'rating': 5
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_feedback_undelivered_order(self):
        pending = place_order(self.customer, self.mug, delivered=False)
        self.client.force_authenticate(user=self.customer)

        response = self.client.post('/api/feedback/', {
            'order_id': pending.id,
            'product_id': self.mug.id,
            'rating': 4
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivered', response.data['error'])

    def test_create_feedback_unknown_order(self):
        self.client.force_authenticate(user=self.other)

        response = self.client.post('/api/feedback/', {
            'order_id': self.order.id,
            'product_id': self.product.id,
            'rating': 4
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_feedback_invalid_rating(self):
        self.client.force_authenticate(user=self.customer)

        response = self.client.post('/api/feedback/', {
            'order_id': self.order.id,
            'product_id': self.product.id,
            'rating': 9
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data)

    def test_update_feedback_by_author(self):
        feedback = self._create(rating=5)
        self.client.force_authenticate(user=self.customer)

        response = self.client.put(f'/api/feedback/{feedback.id}/', {
            'rating': 3,
            'content': 'Changed my mind'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.average_rating, Decimal('3.00'))

    def test_patch_rating_keeps_content(self):
        feedback = self._create(rating=5, content='Keep me')
        self.client.force_authenticate(user=self.customer)

        response = self.client.patch(f'/api/feedback/{feedback.id}/', {'rating': 4}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['content'], 'Keep me')
        self.assertEqual(response.data['rating'], 4)

    def test_patch_content_keeps_rating(self):
        feedback = self._create(rating=5, content='Old text')
        self.client.force_authenticate(user=self.customer)

        response = self.client.patch(f'/api/feedback/{feedback.id}/', {'content': 'new text'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['content'], 'new text')
        self.assertEqual(response.data['rating'], 5)
        self.product.refresh_from_db()
        self.assertEqual(counts_for(self.product), [0, 0, 0, 0, 1])

    def test_put_requires_rating(self):
        feedback = self._create()
        self.client.force_authenticate(user=self.customer)

        response = self.client.put(f'/api/feedback/{feedback.id}/', {'content': 'x'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data)

    def test_update_feedback_by_other_user_forbidden(self):
        feedback = self._create()
        self.client.force_authenticate(user=self.other)

        response = self.client.put(f'/api/feedback/{feedback.id}/', {
            'rating': 1,
            'content': 'nope'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_feedback_by_author(self):
        feedback = self._create()
        self.client.force_authenticate(user=self.customer)

        response = self.client.delete(f'/api/feedback/{feedback.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(AdminActionLog.objects.exists())

    def test_delete_feedback_by_staff_is_logged(self):
        feedback = self._create()
        self.client.force_authenticate(user=self.staff)

        response = self.client.delete(f'/api/feedback/{feedback.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        log = AdminActionLog.objects.get()
        self.assertEqual(log.action, AdminActionLog.Action.DELETE_FEEDBACK)
        self.assertEqual(log.target_user, self.customer)

    def test_delete_feedback_by_other_customer_forbidden(self):
        feedback = self._create()
        self.client.force_authenticate(user=self.other)

        response = self.client.delete(f'/api/feedback/{feedback.id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Feedback.objects.filter(pk=feedback.id).exists())

    def test_get_missing_feedback(self):
        response = self.client.get('/api/feedback/999999/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_product_feedback_list_is_public(self):
        self._create()

        response = self.client.get(f'/api/feedback/products/{self.product.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['user_full_name'], self.customer.full_name)

    def test_product_rating(self):
        self._create(rating=4)

        response = self.client.get(f'/api/feedback/products/{self.product.id}/rating/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['feedback_total'], 1)
        self.assertEqual(response.data['average_rating'], '4.00')
        self.assertEqual(response.data['breakdown']['4'], 1)
        self.assertEqual(response.data['breakdown']['1'], 0)

    def test_my_feedback(self):
        self._create()
        self.client.force_authenticate(user=self.other)

        response = self.client.get('/api/feedback/mine/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_recent_feedback_count(self):
        self._create()
        second = place_order(self.customer, self.mug)
        FeedbackService.create_feedback(self.customer.id, second.id, self.mug.id, 'Holds coffee', 5)

        response = self.client.get('/api/feedback/recent/', {'count': 1})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['product_id'], self.mug.id)

    def test_eligibility_endpoint(self):
        line = self.order.details.get()
        self.client.force_authenticate(user=self.customer)
        url = '/api/feedback/eligibility/'
        params = {'product_id': self.product.id, 'order_detail_id': line.id}

        response = self.client.get(url, params)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['can_provide_feedback'])

        self._create()

        response = self.client.get(url, params)
        self.assertFalse(response.data['can_provide_feedback'])
