"""
Cart and order URL patterns.
"""
from django.urls import path
from apps.orders import views

app_name = 'orders'

urlpatterns = [
    # Cart
    path('cart/', views.cart_view, name='cart'),
    path('cart/checkout/', views.checkout_view, name='checkout'),
    path('cart/<int:product_id>/', views.cart_line_view, name='cart-line'),

    # Orders
    path('orders/', views.MyOrdersListView.as_view(), name='my-orders'),
    path('orders/<int:pk>/', views.OrderDetailView.as_view(), name='detail'),
    path('orders/<int:pk>/statuses/', views.add_order_status, name='add-status'),
]
