"""
Feedback URL patterns.
"""
from django.urls import path
from apps.feedback import views

app_name = 'feedback'

urlpatterns = [
    # Create
    path('', views.create_feedback, name='create'),

    # Single feedback
    path('<int:pk>/', views.FeedbackDetailView.as_view(), name='detail'),

    # Lists
    path('mine/', views.MyFeedbackListView.as_view(), name='mine'),
    path('recent/', views.recent_feedback, name='recent'),

    # Product feedback (public)
    path('products/<int:product_id>/', views.ProductFeedbackListView.as_view(), name='product-feedback'),
    path('products/<int:product_id>/rating/', views.product_rating, name='product-rating'),

    # UI gating
    path('eligibility/', views.feedback_eligibility, name='eligibility'),
]
