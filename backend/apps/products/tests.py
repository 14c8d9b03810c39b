from decimal import Decimal
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from apps.products.models import Product


class ProductAPITestCase(TestCase):
    """Test the public catalog endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.lamp = Product.objects.create(name='Desk Lamp', price=Decimal('25.00'), stock=3)
        self.mug = Product.objects.create(name='Coffee Mug', price=Decimal('8.50'), stock=12)
        self.hidden = Product.objects.create(
            name='Old Lamp',
            price=Decimal('10.00'),
            is_active=False
        )

    def test_list_active_products(self):
        response = self.client.get('/api/products/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = {item['name'] for item in response.data}
        self.assertEqual(names, {'Desk Lamp', 'Coffee Mug'})

    def test_search_by_name(self):
        response = self.client.get('/api/products/', {'search': 'lamp'})

        self.assertEqual([item['name'] for item in response.data], ['Desk Lamp'])

    def test_new_product_has_empty_rating(self):
        response = self.client.get(f'/api/products/{self.lamp.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['feedback_total'], 0)
        self.assertEqual(response.data['average_rating'], '0.00')

    def test_inactive_product_hidden(self):
        response = self.client.get(f'/api/products/{self.hidden.id}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
