"""
Admin panel configuration for logging models.
"""
from django.contrib import admin
from django.utils.html import format_html
from common.models import AuthenticationLog, AdminActionLog


@admin.register(AuthenticationLog)
class AuthenticationLogAdmin(admin.ModelAdmin):
    """Admin for authentication logs"""

    list_display = ['status_icon', 'action', 'identifier', 'ip_address', 'timestamp']
    list_filter = ['action', 'success', 'timestamp']
    search_fields = ['identifier', 'ip_address', 'user__email']
    readonly_fields = ['user', 'identifier', 'action', 'success', 'failure_reason',
                       'ip_address', 'user_agent', 'timestamp']
    date_hierarchy = 'timestamp'

    def status_icon(self, obj):
        color, mark = ('green', '✓') if obj.success else ('red', '✗')
        return format_html('<span style="color: {};">{}</span>', color, mark)
    status_icon.short_description = 'Status'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser


@admin.register(AdminActionLog)
class AdminActionLogAdmin(admin.ModelAdmin):
    """Admin for admin action logs"""

    list_display = ['admin_email', 'action', 'target_email', 'ip_address', 'timestamp']
    list_filter = ['action', 'timestamp']
    search_fields = ['admin_user__email', 'target_user__email', 'ip_address']
    readonly_fields = ['admin_user', 'action', 'target_user', 'details', 'ip_address', 'timestamp']
    date_hierarchy = 'timestamp'

    def admin_email(self, obj):
        return obj.admin_user.email
    admin_email.short_description = 'Admin'
    admin_email.admin_order_field = 'admin_user__email'

    def target_email(self, obj):
        return obj.target_user.email if obj.target_user else '-'
    target_email.short_description = 'Target User'
    target_email.admin_order_field = 'target_user__email'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser
