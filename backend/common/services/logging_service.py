"""
Logging service for tracking authentication events and admin actions.
"""
from common.models import AuthenticationLog, AdminActionLog
from django.utils import timezone
from datetime import timedelta
import logging

logger = logging.getLogger('security')


class LoggingService:
    """
    Centralized logging service for all security-related events.
    """

    @staticmethod
    def get_client_ip(request):
        """Extract client IP from request"""
        if request is None:
            return None
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            ip = x_forwarded_for.split(',')[0].strip()
        else:
            ip = request.META.get('REMOTE_ADDR')
        return ip

    @staticmethod
    def get_user_agent(request):
        """Extract user agent from request"""
        if request is None:
            return ''
        return request.META.get('HTTP_USER_AGENT', '')

    # ==================== Authentication Logging ====================

    @staticmethod
    def log_authentication(user, identifier, action, request, success=True, failure_reason=None):
        """
        Log authentication events (login, failed login, password reset).

        Args:
            user: User object (can be None for failed logins)
            identifier: E-mail or phone number used
            action: AuthenticationLog.Action choice
            request: HTTP request object
            success: Whether the action was successful
            failure_reason: Reason for failure (if applicable)
        """
        log = AuthenticationLog.objects.create(
            user=user,
            identifier=identifier,
            action=action,
            success=success,
            failure_reason=failure_reason,
            ip_address=LoggingService.get_client_ip(request),
            user_agent=LoggingService.get_user_agent(request)
        )

        status = "SUCCESS" if success else "FAILED"
        logger.info(f"[AUTH {status}] {action} - {identifier} from {log.ip_address}")

        return log

    @staticmethod
    def check_failed_login_attempts(identifier, time_window_minutes=15, max_attempts=5):
        """
        Check for repeated failed login attempts.

        Args:
            identifier: E-mail or phone number
            time_window_minutes: Time window to check (default: 15 minutes)
            max_attempts: Maximum allowed failed attempts (default: 5)

        Returns:
            tuple: (is_locked, attempts_count)
        """
        time_threshold = timezone.now() - timedelta(minutes=time_window_minutes)

        failed_attempts = AuthenticationLog.objects.filter(
            identifier=identifier,
            action=AuthenticationLog.Action.FAILED_LOGIN,
            success=False,
            timestamp__gte=time_threshold
        ).count()

        is_locked = failed_attempts >= max_attempts
        if is_locked:
            logger.error(
                f"[LOCKED] {identifier} has {failed_attempts} failed logins "
                f"in the last {time_window_minutes} minutes"
            )

        return is_locked, failed_attempts

    # ==================== Admin Action Logging ====================

    @staticmethod
    def log_admin_action(admin_user, action, request, target_user=None, details=None):
        """
        Log admin actions (create, modify, delete user, moderate feedback).

        Args:
            admin_user: Admin user performing the action
            action: AdminActionLog.Action choice
            request: HTTP request object
            target_user: User affected by the action (optional)
            details: Additional details dict (optional)
        """
        log = AdminActionLog.objects.create(
            admin_user=admin_user,
            action=action,
            target_user=target_user,
            details=details or {},
            ip_address=LoggingService.get_client_ip(request)
        )

        target_str = f"→ {target_user.email}" if target_user else ""
        logger.warning(f"[ADMIN ACTION] {admin_user.email} {action} {target_str}")

        return log
