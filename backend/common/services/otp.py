"""
One-time password codes for password resets.
Codes are stored hashed in the database; delivery is left to the caller.
"""
import secrets
from datetime import timedelta
from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.utils import timezone


class OTPService:
    """Service for generating and verifying one-time codes"""

    OTP_LENGTH = 6

    @staticmethod
    def generate_otp() -> str:
        """Generate a 6-digit OTP code"""
        return ''.join(secrets.choice('0123456789') for _ in range(OTPService.OTP_LENGTH))

    @staticmethod
    def expiry():
        return timezone.now() + timedelta(minutes=settings.PASSWORD_RESET_CODE_TTL_MINUTES)

    @staticmethod
    def hash_otp(otp: str) -> str:
        return make_password(otp)

    @staticmethod
    def matches(otp: str, otp_hash: str) -> bool:
        return bool(otp) and check_password(otp, otp_hash)


# Singleton instance
otp_service = OTPService()
