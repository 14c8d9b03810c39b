from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework import generics, status
from rest_framework.throttling import AnonRateThrottle

from django.conf import settings
from django.db.models import ProtectedError

from .models import User
from .serializers import (
    RegisterSerializer,
    UserSerializer,
    AdminUserSerializer,
    ForgotPasswordSerializer,
    ResetPasswordSerializer,
)
from .services.account_service import AccountService
from common.models import AdminActionLog, AuthenticationLog
from common.permissions import IsActiveUser, IsAdminOrStaff
from common.services.logging_service import LoggingService
from common.throttling import PasswordResetThrottle

import logging

logger = logging.getLogger('security')


class RegisterRateThrottle(AnonRateThrottle):
    """
    Rate limiting for self-registration.
    """
    rate = "20/hour"


# ============================
# Register
# ============================

@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def register_view(request):
    """
    Register a new customer account.
    """
    serializer = RegisterSerializer(data=request.data)

    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"New user registered: {user.email}")
        return Response(
            {"message": "Account created successfully.", "id": user.id},
            status=status.HTTP_201_CREATED
        )

    logger.warning(f"Registration failed: {serializer.errors}")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# ============================
# My Profile
# ============================

@api_view(["GET", "PATCH"])
@permission_classes([IsAuthenticated, IsActiveUser])
def me_view(request):
    """
    Get or update the current user's profile.
    """
    if request.method == "GET":
        return Response(UserSerializer(request.user).data)

    serializer = UserSerializer(request.user, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)

    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# ============================
# User management (ADMIN / STAFF)
# ============================

class AdminUserListCreateView(generics.ListCreateAPIView):
    """
    List every account or create a new one.
    """
    serializer_class = AdminUserSerializer
    permission_classes = [IsAdminOrStaff]
    queryset = User.objects.order_by('id')

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        password = data.pop('password')
        user = AccountService.create_user(password=password, **data)
        serializer.instance = user

        LoggingService.log_admin_action(
            admin_user=self.request.user,
            action=AdminActionLog.Action.CREATE_USER,
            request=self.request,
            target_user=user,
            details={'role': user.role}
        )


class AdminUserDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Read, edit or delete a single account.
    """
    serializer_class = AdminUserSerializer
    permission_classes = [IsAdminOrStaff]
    queryset = User.objects.all()

    def perform_update(self, serializer):
        data = dict(serializer.validated_data)
        password = data.pop('password', None)
        user = AccountService.update_user(serializer.instance, password=password, **data)
        serializer.instance = user

        LoggingService.log_admin_action(
            admin_user=self.request.user,
            action=AdminActionLog.Action.MODIFY_USER,
            request=self.request,
            target_user=user,
            details={'fields': sorted(serializer.validated_data.keys())}
        )

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()

        if user.pk == request.user.pk:
            return Response(
                {"error": "Cannot delete your own account"},
                status=status.HTTP_403_FORBIDDEN
            )

        email = user.email
        try:
            AccountService.delete_user(user)
        except ProtectedError:
            logger.warning(f"Refused to delete {email}: account has orders")
            return Response(
                {"error": "Cannot delete an account that has orders. Deactivate it instead."},
                status=status.HTTP_409_CONFLICT
            )

        LoggingService.log_admin_action(
            admin_user=request.user,
            action=AdminActionLog.Action.DELETE_USER,
            request=request,
            details={'email': email}
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================
# Forgot / Reset password
# ============================

@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([PasswordResetThrottle])
def forgot_password_view(request):
    """
    Issue a one-time reset code for the given email.
    """
    serializer = ForgotPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']

    result = AccountService.request_password_reset(email)
    if result is None:
        return Response({"error": "Email not found."}, status=status.HTTP_400_BAD_REQUEST)

    user, otp = result
    LoggingService.log_authentication(
        user=user,
        identifier=email,
        action=AuthenticationLog.Action.PASSWORD_RESET_REQUEST,
        request=request,
        success=True
    )

    body = {
        "message": "Password reset code issued.",
        "expires_in_minutes": settings.PASSWORD_RESET_CODE_TTL_MINUTES,
    }
    if settings.PASSWORD_RESET_EXPOSE_CODE:
        body["otp"] = otp
    return Response(body, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([PasswordResetThrottle])
def reset_password_view(request):
    """
    Set a new password using a valid reset code.
    """
    serializer = ResetPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    ok = AccountService.reset_password(data['email'], data['otp'], data['new_password'])

    LoggingService.log_authentication(
        user=None,
        identifier=data['email'],
        action=AuthenticationLog.Action.PASSWORD_RESET,
        request=request,
        success=ok,
        failure_reason=None if ok else "Invalid or expired code"
    )

    if not ok:
        return Response({"error": "Invalid OTP or OTP expired."}, status=status.HTTP_400_BAD_REQUEST)

    return Response({"message": "Password reset successful."}, status=status.HTTP_200_OK)
