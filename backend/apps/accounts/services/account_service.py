"""
Account service - admin user management and password resets.
"""
from typing import Optional, Tuple
from django.db import transaction
from apps.accounts.models import User, PasswordResetCode
from common.services.otp import otp_service
import logging

logger = logging.getLogger('accounts')


class AccountService:
    """
    Business logic behind the admin user endpoints and the
    forgot/reset password flow.
    """

    @staticmethod
    @transaction.atomic
    def create_user(password: str, **fields) -> User:
        """
        Create a user on behalf of an administrator.

        The manager grants Django admin access to admin and staff roles.
        Every account created here starts with is_first_login set.
        """
        user = User.objects.create_user(password=password, **fields)
        logger.info(f"User created: {user.email} ({user.role})")
        return user

    @staticmethod
    @transaction.atomic
    def update_user(user: User, password: Optional[str] = None, **fields) -> User:
        """Apply field changes and, when given, a new password."""
        for name, value in fields.items():
            setattr(user, name, value)

        if 'role' in fields:
            user.is_staff = user.role in (User.Role.ADMIN, User.Role.STAFF)

        if password:
            user.set_password(password)

        user.save()
        logger.info(f"User updated: {user.email}")
        return user

    @staticmethod
    def delete_user(user: User) -> None:
        email = user.email
        user.delete()
        logger.warning(f"User deleted: {email}")

    @staticmethod
    @transaction.atomic
    def request_password_reset(email: str) -> Optional[Tuple[User, str]]:
        """
        Issue a one-time reset code for the account with this email.

        Earlier unused codes are invalidated. Returns (user, code), or None
        when no account matches.
        """
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            return None

        PasswordResetCode.objects.filter(user=user, used=False).update(used=True)

        otp = otp_service.generate_otp()
        PasswordResetCode.objects.create(
            user=user,
            code_hash=otp_service.hash_otp(otp),
            expires_at=otp_service.expiry(),
        )

        logger.info(f"Password reset code issued for {user.email}")
        return user, otp

    @staticmethod
    @transaction.atomic
    def reset_password(email: str, otp: str, new_password: str) -> bool:
        """
        Set a new password if the code matches the latest unused,
        unexpired code for this account.
        """
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            return False

        code = (
            PasswordResetCode.objects.select_for_update()
            .filter(user=user, used=False)
            .order_by('-created_at')
            .first()
        )
        if code is None or code.is_expired or not otp_service.matches(otp, code.code_hash):
            logger.warning(f"Invalid or expired reset code for {user.email}")
            return False

        code.used = True
        code.save(update_fields=['used'])

        user.set_password(new_password)
        user.save(update_fields=['password', 'updated_at'])

        logger.info(f"Password reset for {user.email}")
        return True
