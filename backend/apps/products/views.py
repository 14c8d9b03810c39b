"""
Catalog endpoints. Public, read-only.
"""
from rest_framework import generics, permissions
from apps.products.models import Product
from apps.products.serializers import ProductSerializer


class ProductListView(generics.ListAPIView):
    """
    List active products, optionally filtered by a name search.
    """
    serializer_class = ProductSerializer
    permission_classes = [permissions.AllowAny]

    def get_queryset(self):
        queryset = Product.objects.filter(is_active=True)
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(name__icontains=search)
        return queryset


class ProductDetailView(generics.RetrieveAPIView):
    serializer_class = ProductSerializer
    permission_classes = [permissions.AllowAny]
    queryset = Product.objects.filter(is_active=True)
