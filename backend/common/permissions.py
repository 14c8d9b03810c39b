"""
Reusable permission classes for the storefront.
"""
from rest_framework.permissions import BasePermission


class IsActiveUser(BasePermission):
    """
    Permission check to ensure user account is active.
    """
    message = "Your account is inactive. Please contact support."

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return True  # Let authentication handle this

        return request.user.is_active


class IsAdminOrStaff(BasePermission):
    """
    Permission check for administrators and staff.
    """
    message = "Only administrators or staff can access this resource."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            request.user.is_active and
            request.user.role in ['ADMIN', 'STAFF']
        )
