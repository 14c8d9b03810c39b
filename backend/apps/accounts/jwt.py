from rest_framework import serializers, status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes
from django.core.exceptions import ValidationError as DjangoValidationError
from apps.accounts.models import User
from common.validators import normalize_phone_number
from common.services.logging_service import LoggingService
from common.models import AuthenticationLog
from common.throttling import AuthThrottle
import logging

logger = logging.getLogger('security')


def add_profile_claims(token, user):
    """Embed role and display name in a token issued for this user."""
    token['role'] = user.role
    token['full_name'] = user.full_name or ''
    return token


def issue_tokens(user):
    refresh = add_profile_claims(RefreshToken.for_user(user), user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


def _lockout_check(identifier):
    is_locked, _ = LoggingService.check_failed_login_attempts(identifier)
    if is_locked:
        raise AuthenticationFailed(
            "Account temporarily locked due to multiple failed login attempts. "
            "Please try again later or contact support."
        )


# ============================
# Customer login (phone number)
# ============================

class CustomerLoginSerializer(serializers.Serializer):
    """
    Phone number + password login for customers.
    Inactive accounts are reported rather than silently rejected.
    """
    phone_number = serializers.CharField(max_length=20)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        request = self.context.get('request')
        try:
            phone_number = normalize_phone_number(attrs['phone_number'])
        except DjangoValidationError:
            # Stored numbers always pass normalisation, so this cannot match
            phone_number = attrs['phone_number'].strip()

        _lockout_check(phone_number)

        user = User.objects.get_by_phone_number(phone_number)
        if user is None or not user.check_password(attrs['password']):
            LoggingService.log_authentication(
                user=None,
                identifier=phone_number,
                action=AuthenticationLog.Action.FAILED_LOGIN,
                request=request,
                success=False,
                failure_reason="Invalid phone number or password"
            )
            raise AuthenticationFailed("Invalid phone number or password.")

        attrs['user'] = user
        return attrs


@extend_schema(
    tags=['Authentication'],
    summary='Customer login with phone number and password',
    request=CustomerLoginSerializer,
    responses={200: OpenApiTypes.OBJECT, 401: OpenApiTypes.OBJECT, 403: OpenApiTypes.OBJECT},
    examples=[
        OpenApiExample(
            'Login Request',
            value={'phone_number': '0912345678', 'password': 'SecurePass123!'},
            request_only=True,
        ),
        OpenApiExample(
            'Inactive Account',
            value={'detail': 'Your account is inactive. Please contact support.', 'is_active': False},
            response_only=True,
            status_codes=['403'],
        ),
    ],
)
class CustomerLoginView(APIView):
    """
    Issue a JWT pair for a customer identified by phone number.
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthThrottle]

    def post(self, request):
        serializer = CustomerLoginSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data['user']

        if not user.is_active:
            logger.warning(f"Inactive user attempted login: {user.phone_number}")
            return Response(
                {
                    'detail': 'Your account is inactive. Please contact support.',
                    'is_active': False,
                },
                status=status.HTTP_403_FORBIDDEN
            )

        LoggingService.log_authentication(
            user=user,
            identifier=user.phone_number,
            action=AuthenticationLog.Action.LOGIN,
            request=request,
            success=True
        )
        logger.info(f"Successful login: {user.phone_number}")

        return Response({
            **issue_tokens(user),
            'user': {
                'id': user.id,
                'phone_number': user.phone_number,
                'full_name': user.full_name,
                'role': user.role,
            }
        })


# ============================
# Admin login (email)
# ============================

class AdminTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Email + password login restricted to ADMIN and STAFF accounts.
    """

    @classmethod
    def get_token(cls, user):
        return add_profile_claims(super().get_token(user), user)

    def validate(self, attrs):
        email = attrs.get(self.username_field, '')
        request = self.context.get('request')

        _lockout_check(email)

        try:
            data = super().validate(attrs)
        except AuthenticationFailed as e:
            LoggingService.log_authentication(
                user=None,
                identifier=email,
                action=AuthenticationLog.Action.FAILED_LOGIN,
                request=request,
                success=False,
                failure_reason=str(e)
            )
            raise

        if not self.user.is_admin_or_staff:
            logger.warning(f"Non-admin attempted admin login: {self.user.email}")
            LoggingService.log_authentication(
                user=self.user,
                identifier=email,
                action=AuthenticationLog.Action.FAILED_LOGIN,
                request=request,
                success=False,
                failure_reason="Not an administrator"
            )
            raise AuthenticationFailed("Only administrators and staff can sign in here.")

        is_first_login = self.user.is_first_login
        if is_first_login:
            self.user.is_first_login = False
            self.user.save(update_fields=['is_first_login'])

        LoggingService.log_authentication(
            user=self.user,
            identifier=email,
            action=AuthenticationLog.Action.ADMIN_LOGIN,
            request=request,
            success=True
        )
        logger.info(f"Successful admin login: {self.user.email}")

        data['user'] = {
            'id': self.user.id,
            'email': self.user.email,
            'phone_number': self.user.phone_number,
            'full_name': self.user.full_name,
            'address': self.user.address,
            'image': self.user.image,
            'role': self.user.role,
        }
        data['is_first_login'] = is_first_login
        return data


@extend_schema(
    tags=['Authentication'],
    summary='Admin login with email and password',
    description='Only ADMIN and STAFF accounts may obtain tokens here. '
                'The response reports whether this was the first login.',
    request=AdminTokenObtainPairSerializer,
    responses={200: OpenApiTypes.OBJECT, 401: OpenApiTypes.OBJECT},
)
class AdminLoginView(TokenObtainPairView):
    serializer_class = AdminTokenObtainPairSerializer
    throttle_classes = [AuthThrottle]
