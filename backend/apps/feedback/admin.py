"""
Feedback admin configuration.
Counts and ratings are read-only here; they change through the feedback service.
"""
from django.contrib import admin
from apps.feedback.models import Feedback, RatingCategory


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'product', 'rating', 'created_at']
    list_filter = ['rating', 'created_at']
    search_fields = ['user__email', 'product__name', 'content']
    readonly_fields = [
        'user', 'product', 'order_detail', 'rating_category',
        'content', 'rating', 'created_at', 'updated_at'
    ]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(RatingCategory)
class RatingCategoryAdmin(admin.ModelAdmin):
    list_display = ['product', 'name', 'stars', 'total_ratings']
    search_fields = ['product__name']
    readonly_fields = ['product', 'stars', 'name', 'total_ratings']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
