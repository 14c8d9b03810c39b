from django.contrib.auth.base_user import BaseUserManager


STAFF_ROLES = ("ADMIN", "STAFF")


class UserManager(BaseUserManager):
    """
    Manager for email-keyed accounts.
    Customers are also reachable by phone number, their login identifier.
    """

    def create_user(self, email, password=None, **extra_fields):

        if not email:
            raise ValueError("Email is required")

        extra_fields.setdefault("role", "CUSTOMER")
        extra_fields.setdefault("is_staff", extra_fields["role"] in STAFF_ROLES)

        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)

        return user

    def create_superuser(self, email, password=None, **extra_fields):

        extra_fields.setdefault("role", "ADMIN")
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields["role"] not in STAFF_ROLES:
            raise ValueError("Superuser must have the ADMIN or STAFF role")

        if not extra_fields["is_superuser"]:
            raise ValueError("Superuser must be superuser")

        return self.create_user(email, password, **extra_fields)

    def get_by_phone_number(self, phone_number):
        if not phone_number:
            return None
        return self.filter(phone_number=phone_number).first()
