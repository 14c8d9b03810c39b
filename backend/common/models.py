"""
Persistent security trail: sign-in attempts and privileged account changes.
Rows are append-only; they are written by common.services.logging_service.
"""
from django.db import models
from django.conf import settings


class RequestEvent(models.Model):
    """Where and when a logged request came from."""

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        abstract = True
        ordering = ['-timestamp']


class AuthenticationLog(RequestEvent):
    """One sign-in or password-reset attempt, successful or not."""

    class Action(models.TextChoices):
        LOGIN = 'LOGIN', 'Customer Login'
        ADMIN_LOGIN = 'ADMIN_LOGIN', 'Admin Login'
        FAILED_LOGIN = 'FAILED_LOGIN', 'Failed Login'
        PASSWORD_RESET_REQUEST = 'PASSWORD_RESET_REQUEST', 'Reset Code Requested'
        PASSWORD_RESET = 'PASSWORD_RESET', 'Password Reset'

    # Null when the identifier matched no account
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='auth_logs'
    )
    identifier = models.CharField(
        max_length=255,
        help_text="Phone number (customers) or e-mail (admins, resets) as submitted"
    )
    action = models.CharField(max_length=30, choices=Action.choices, db_index=True)
    success = models.BooleanField(default=True)
    failure_reason = models.TextField(blank=True, null=True)
    user_agent = models.TextField(blank=True, null=True)

    class Meta(RequestEvent.Meta):
        db_table = 'auth_log'
        verbose_name = 'Authentication Log'
        verbose_name_plural = 'Authentication Logs'
        indexes = [
            # Lockout check: failed attempts per identifier in a time window
            models.Index(fields=['identifier', 'action', 'timestamp']),
            models.Index(fields=['ip_address', 'timestamp']),
        ]

    def __str__(self):
        outcome = "ok" if self.success else "failed"
        return f"{self.action} {outcome}: {self.identifier}"


class AdminActionLog(RequestEvent):
    """A change made by an admin or staff account to users or feedback."""

    class Action(models.TextChoices):
        CREATE_USER = 'CREATE_USER', 'Create User'
        MODIFY_USER = 'MODIFY_USER', 'Modify User'
        DELETE_USER = 'DELETE_USER', 'Delete User'
        DELETE_FEEDBACK = 'DELETE_FEEDBACK', 'Delete Feedback'

    admin_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='admin_actions_performed'
    )
    action = models.CharField(max_length=30, choices=Action.choices, db_index=True)
    # Kept after the target account is deleted; details holds its e-mail
    target_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='admin_actions_received'
    )
    details = models.JSONField(default=dict, blank=True)

    class Meta(RequestEvent.Meta):
        db_table = 'admin_action_log'
        verbose_name = 'Admin Action Log'
        verbose_name_plural = 'Admin Action Logs'
        indexes = [
            models.Index(fields=['admin_user', 'timestamp']),
            models.Index(fields=['action', 'timestamp']),
        ]

    def __str__(self):
        target = self.target_user.email if self.target_user else self.details.get('email', '-')
        return f"{self.admin_user.email}: {self.action} {target}"
