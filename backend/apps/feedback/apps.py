"""
Feedback app configuration.
Handles product feedback and per-product rating statistics.
"""
from django.apps import AppConfig


class FeedbackConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.feedback'
    verbose_name = 'Feedback'
