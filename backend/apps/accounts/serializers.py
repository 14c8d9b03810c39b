from rest_framework import serializers
from .models import User
from common.validators import normalize_phone_number
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
import logging

logger = logging.getLogger('accounts')


def _clean_phone(value):
    if not value:
        return None
    try:
        return normalize_phone_number(value)
    except DjangoValidationError as e:
        raise serializers.ValidationError(e.messages)


# Declared explicitly so separators are stripped before the format check
def phone_field(**kwargs):
    return serializers.CharField(max_length=20, **kwargs)


# ============================
# Register Serializer
# ============================

class RegisterSerializer(serializers.ModelSerializer):
    """
    Serializer for customer self-registration.
    """

    phone_number = phone_field()

    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ("email", "phone_number", "full_name", "address", "password", "password_confirm")

    def validate_phone_number(self, value):
        value = _clean_phone(value)
        if User.objects.filter(phone_number=value).exists():
            raise serializers.ValidationError("This phone number is already registered.")
        return value

    def validate(self, attrs):
        """Validate that passwords match."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                "password_confirm": "Passwords do not match"
            })
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')

        user = User.objects.create_user(password=password, **validated_data)
        logger.info(f"Customer registered: {user.email}")
        return user


# ============================
# User Serializer (Safe)
# ============================

class UserSerializer(serializers.ModelSerializer):
    """
    Safe user serializer that only exposes non-sensitive fields.
    """

    phone_number = phone_field(required=False, allow_null=True, allow_blank=True)

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "phone_number",
            "full_name",
            "address",
            "image",
            "role",
            "date_joined",
        )
        read_only_fields = (
            "id",
            "email",
            "role",
            "date_joined"
        )

    def validate_phone_number(self, value):
        value = _clean_phone(value)
        if value and User.objects.exclude(pk=self.instance.pk).filter(phone_number=value).exists():
            raise serializers.ValidationError("This phone number is already registered.")
        return value


# ============================
# Admin User Serializer
# ============================

class AdminUserSerializer(serializers.ModelSerializer):
    """
    Admin-only serializer for creating and editing any account.
    Password is required on create and optional on update.
    """

    phone_number = phone_field(required=False, allow_null=True, allow_blank=True)

    password = serializers.CharField(
        write_only=True,
        required=False,
        validators=[validate_password],
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "password",
            "phone_number",
            "full_name",
            "address",
            "image",
            "role",
            "is_active",
            "is_first_login",
            "date_joined",
            "updated_at",
        )
        read_only_fields = ("id", "is_first_login", "date_joined", "updated_at")

    def validate_phone_number(self, value):
        value = _clean_phone(value)
        qs = User.objects.filter(phone_number=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if value and qs.exists():
            raise serializers.ValidationError("This phone number is already registered.")
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({"password": "This field is required."})
        return attrs


# ============================
# Password Reset Serializers
# ============================

class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()
    otp = serializers.RegexField(r'^\d{6}$', error_messages={'invalid': 'Code must be 6 digits.'})
    new_password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
