"""
Feedback permissions.
"""
from rest_framework import permissions


class IsFeedbackAuthor(permissions.BasePermission):
    """
    Permission: User must have written the feedback.
    """
    message = "You can only change your own feedback."

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id


class IsFeedbackAuthorOrStaff(permissions.BasePermission):
    """
    Permission: Author, admin or staff.
    """
    message = "You can only delete your own feedback."

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id or request.user.is_admin_or_staff
