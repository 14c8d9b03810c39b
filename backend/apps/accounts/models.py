from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.utils import timezone
from .managers import UserManager
from common.validators import phone_regex


# ============================
# User Model
# ============================

class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom user model with email-based authentication.
    Customers sign in with their phone number, admins and staff with email.
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        STAFF = "STAFF", "Staff"
        CUSTOMER = "CUSTOMER", "Customer"

    # Core fields
    email = models.EmailField(unique=True, db_index=True)
    phone_number = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[phone_regex],
        help_text="Used as the login identifier for customers"
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CUSTOMER, db_index=True)

    # Profile
    full_name = models.CharField(max_length=150, blank=True)
    address = models.CharField(max_length=255, blank=True)
    image = models.URLField(max_length=500, blank=True)

    # Account status
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    is_first_login = models.BooleanField(
        default=True,
        help_text="Cleared after the first successful admin login"
    )

    # Timestamps
    date_joined = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        indexes = [
            models.Index(fields=['role']),
        ]

    def __str__(self):
        return self.email

    @property
    def is_admin_or_staff(self):
        return self.role in (self.Role.ADMIN, self.Role.STAFF)


# ============================
# Password Reset
# ============================

class PasswordResetCode(models.Model):
    """
    One-time code issued by the forgot-password flow.
    Only the hash of the code is stored.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="password_reset_codes")
    code_hash = models.CharField(max_length=128)
    expires_at = models.DateTimeField()
    used = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at']),
        ]

    def __str__(self):
        return f"Reset code for {self.user.email} ({'used' if self.used else 'active'})"

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at
