"""
Order permissions.
"""
from rest_framework import permissions


class IsOrderOwnerOrStaff(permissions.BasePermission):
    """
    Permission: User must own the order, or be admin/staff.
    """
    def has_object_permission(self, request, view, obj):
        return obj.is_owner(request.user) or request.user.is_admin_or_staff
