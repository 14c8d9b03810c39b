"""
Cart and order endpoints.
"""
from rest_framework import status, generics, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from apps.orders.models import Order
from apps.orders.serializers import (
    OrderDetailSerializer,
    AddToCartSerializer,
    UpdateCartLineSerializer,
    CheckoutSerializer,
    OrderSerializer,
    OrderStatusSerializer,
)
from apps.orders.permissions import IsOrderOwnerOrStaff
from apps.orders.services.cart_service import CartService
from apps.orders.services.order_service import OrderService
from common.permissions import IsAdminOrStaff


# ============================
# Cart
# ============================

@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated])
def cart_view(request):
    """
    GET: list the caller's cart.
    POST: add a product (or increase its quantity).
    """
    if request.method == 'GET':
        lines = CartService.get_cart(request.user)
        return Response(OrderDetailSerializer(lines, many=True).data)

    serializer = AddToCartSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        line = CartService.add_to_cart(
            request.user,
            product_id=serializer.validated_data['product_id'],
            quantity=serializer.validated_data['quantity']
        )
    except ValidationError as e:
        return Response({'error': e.messages[0]}, status=status.HTTP_400_BAD_REQUEST)

    return Response(OrderDetailSerializer(line).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([permissions.IsAuthenticated])
def cart_line_view(request, product_id):
    """
    PATCH: set the quantity of a cart line.
    DELETE: remove the line.
    """
    if request.method == 'DELETE':
        CartService.remove_from_cart(request.user, product_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = UpdateCartLineSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    line = CartService.update_quantity(
        request.user,
        product_id,
        serializer.validated_data['quantity']
    )
    return Response(OrderDetailSerializer(line).data)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def checkout_view(request):
    """
    Turn the cart into an order.
    """
    serializer = CheckoutSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        order = OrderService.checkout(
            request.user,
            shipping_address=serializer.validated_data.get('shipping_address', '')
        )
    except ValidationError as e:
        return Response({'error': e.messages[0]}, status=status.HTTP_400_BAD_REQUEST)

    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


# ============================
# Orders
# ============================

class MyOrdersListView(generics.ListAPIView):
    """
    List orders placed by the current user.
    """
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Order.objects.filter(
            user=self.request.user
        ).prefetch_related('details__product', 'statuses')


class OrderDetailView(generics.RetrieveAPIView):
    """
    Get one order. Owner, admin or staff only.
    """
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated, IsOrderOwnerOrStaff]
    queryset = Order.objects.prefetch_related('details__product', 'statuses')


@api_view(['POST'])
@permission_classes([IsAdminOrStaff])
def add_order_status(request, pk):
    """
    Append a status event (e.g. DELIVERED) to an order.
    """
    order = get_object_or_404(Order, pk=pk)

    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    event = OrderService.add_status(
        order,
        serializer.validated_data['status_name'],
        note=serializer.validated_data.get('note', ''),
        changed_by=request.user
    )
    return Response(OrderStatusSerializer(event).data, status=status.HTTP_201_CREATED)
