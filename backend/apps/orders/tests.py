"""
Tests for the Orders app.
Covers the cart, checkout and the status history.
"""
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status
from apps.orders.models import Order, OrderDetail, OrderStatus
from apps.orders.services.cart_service import CartService
from apps.orders.services.order_service import OrderService
from apps.products.models import Product

User = get_user_model()


class CartServiceTestCase(TestCase):
    """Test cart operations."""

    def setUp(self):
        self.user = User.objects.create_user(email='buyer@test.com', password='testpass123')
        self.product = Product.objects.create(name='Teapot', price=Decimal('19.99'), stock=10)

    def test_add_creates_line_at_current_price(self):
        line = CartService.add_to_cart(self.user, self.product.id, 2)

        self.assertTrue(line.is_cart_line)
        self.assertEqual(line.quantity, 2)
        self.assertEqual(line.unit_price, Decimal('19.99'))
        self.assertEqual(line.line_total, Decimal('39.98'))

    def test_add_same_product_increases_quantity(self):
        CartService.add_to_cart(self.user, self.product.id, 1)
        CartService.add_to_cart(self.user, self.product.id, 3)

        self.assertEqual(CartService.get_cart(self.user).count(), 1)
        self.assertEqual(CartService.get_cart_line(self.user, self.product.id).quantity, 4)

    def test_add_rejects_zero_quantity(self):
        with self.assertRaises(ValidationError):
            CartService.add_to_cart(self.user, self.product.id, 0)

    def test_update_and_remove(self):
        CartService.add_to_cart(self.user, self.product.id, 1)

        line = CartService.update_quantity(self.user, self.product.id, 5)
        self.assertEqual(line.quantity, 5)

        CartService.remove_from_cart(self.user, self.product.id)
        self.assertFalse(CartService.get_cart(self.user).exists())


class OrderServiceTestCase(TestCase):
    """Test checkout and status history."""

    def setUp(self):
        self.user = User.objects.create_user(
            email='buyer@test.com',
            password='testpass123',
            address='1 Elm Street'
        )
        self.teapot = Product.objects.create(name='Teapot', price=Decimal('19.99'), stock=10)
        self.cups = Product.objects.create(name='Cups', price=Decimal('5.00'), stock=10)

    def test_checkout_moves_cart_into_order(self):
        CartService.add_to_cart(self.user, self.teapot.id, 1)
        CartService.add_to_cart(self.user, self.cups.id, 4)

        order = OrderService.checkout(self.user)

        self.assertEqual(order.details.count(), 2)
        self.assertEqual(order.total_amount, Decimal('39.99'))
        self.assertEqual(order.shipping_address, '1 Elm Street')
        self.assertEqual(order.current_status, OrderStatus.PENDING)
        self.assertFalse(CartService.get_cart(self.user).exists())

    def test_checkout_empty_cart(self):
        with self.assertRaises(ValidationError):
            OrderService.checkout(self.user)
        self.assertFalse(Order.objects.exists())

    def test_cart_after_checkout_starts_fresh(self):
        CartService.add_to_cart(self.user, self.teapot.id, 1)
        OrderService.checkout(self.user)

        line = CartService.add_to_cart(self.user, self.teapot.id, 1)

        self.assertEqual(line.quantity, 1)
        self.assertEqual(OrderDetail.objects.filter(user=self.user, product=self.teapot).count(), 2)

    def test_status_history(self):
        CartService.add_to_cart(self.user, self.teapot.id, 1)
        order = OrderService.checkout(self.user)

        OrderService.add_status(order, OrderStatus.SHIPPING)
        OrderService.add_status(order, OrderStatus.DELIVERED, note='Left at door')

        self.assertEqual(
            list(order.statuses.values_list('status_name', flat=True)),
            [OrderStatus.PENDING, OrderStatus.SHIPPING, OrderStatus.DELIVERED]
        )
        self.assertTrue(order.has_status(OrderStatus.DELIVERED))

    def test_unknown_status_rejected(self):
        CartService.add_to_cart(self.user, self.teapot.id, 1)
        order = OrderService.checkout(self.user)

        with self.assertRaises(ValidationError):
            OrderService.add_status(order, 'LOST')


class OrderAPITestCase(TestCase):
    """Test cart and order API endpoints."""

    def setUp(self):
        """Set up test data."""
        self.client = APIClient()

        self.buyer = User.objects.create_user(email='buyer@test.com', password='testpass123')
        self.other = User.objects.create_user(email='other@test.com', password='testpass123')
        self.staff = User.objects.create_user(
            email='staff@test.com',
            password='testpass123',
            role=User.Role.STAFF
        )
        self.product = Product.objects.create(name='Teapot', price=Decimal('20.00'), stock=10)

    def _place_order(self):
        CartService.add_to_cart(self.buyer, self.product.id, 2)
        return OrderService.checkout(self.buyer, shipping_address='5 Oak Road')

    def test_cart_requires_authentication(self):
        response = self.client.get('/api/cart/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_add_to_cart(self):
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post('/api/cart/', {'product_id': self.product.id, 'quantity': 2}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quantity'], 2)
        self.assertEqual(Decimal(response.data['line_total']), Decimal('40.00'))

    def test_add_inactive_product(self):
        self.product.is_active = False
        self.product.save()
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post('/api/cart/', {'product_id': self.product.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_delete_cart_line(self):
        CartService.add_to_cart(self.buyer, self.product.id, 1)
        self.client.force_authenticate(user=self.buyer)
        url = f'/api/cart/{self.product.id}/'

        response = self.client.patch(url, {'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 3)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.get('/api/cart/')
        self.assertEqual(response.data, [])

    def test_checkout(self):
        CartService.add_to_cart(self.buyer, self.product.id, 2)
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post('/api/cart/checkout/', {'shipping_address': '5 Oak Road'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('40.00'))
        self.assertEqual(response.data['current_status'], OrderStatus.PENDING)
        self.assertEqual(len(response.data['details']), 1)

    def test_checkout_empty_cart(self):
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post('/api/cart/checkout/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_my_orders(self):
        self._place_order()
        self.client.force_authenticate(user=self.other)

        response = self.client.get('/api/orders/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_order_detail_owner_only(self):
        order = self._place_order()

        self.client.force_authenticate(user=self.other)
        response = self.client.get(f'/api/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.buyer)
        response = self.client.get(f'/api/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_staff_marks_order_delivered(self):
        order = self._place_order()
        self.client.force_authenticate(user=self.staff)

        response = self.client.post(
            f'/api/orders/{order.id}/statuses/',
            {'status_name': OrderStatus.DELIVERED},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(order.current_status, OrderStatus.DELIVERED)

    def test_customer_cannot_add_status(self):
        order = self._place_order()
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post(
            f'/api/orders/{order.id}/statuses/',
            {'status_name': OrderStatus.DELIVERED},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
