"""
Authentication views for the POS admin platform.
"""

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.views import LoginView, LogoutView
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import (
    CustomTokenObtainPairSerializer,
    ForgotPasswordSerializer,
    LogoutSerializer,
    ResetPasswordSerializer,
    VerifyTokenSerializer,
    user_payload,
)
from .tasks import send_password_reset_email

User = get_user_model()
logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists for that email, a password reset link has been sent."
)


@require_http_methods(["GET"])
def health_check(request):
    """
    Health check endpoint for Docker and Kubernetes.
    Returns 200 OK if the application is running.
    """
    return JsonResponse({"status": "healthy", "service": "pos-admin"})


class CustomTokenObtainPairView(TokenObtainPairView):
    """
    Email/password login returning access and refresh tokens plus the user.
    """

    serializer_class = CustomTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        if response.status_code == status.HTTP_200_OK:
            logger.info("User %s logged in", request.data.get("email"))
        return response


class LogoutAPIView(APIView):
    """
    Blacklist the refresh token so it can no longer mint access tokens.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            RefreshToken(serializer.validated_data["refresh"]).blacklist()
        except TokenError:
            return Response(
                {"detail": "Invalid or expired token."}, status=status.HTTP_400_BAD_REQUEST
            )
        logger.info("User %s logged out", request.user)
        return Response({"detail": "Logged out successfully."}, status=status.HTTP_200_OK)


class ForgotPasswordView(APIView):
    """
    Start a password reset.

    The response is the same whether or not the email is registered.
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = User.objects.filter(
            email__iexact=serializer.validated_data["email"], is_active=True
        ).first()
        if user is not None:
            send_password_reset_email.delay(user.pk)
            logger.info("Password reset requested for user %s", user.pk)
        else:
            logger.info("Password reset requested for unknown email")

        return Response({"detail": FORGOT_PASSWORD_MESSAGE}, status=status.HTTP_200_OK)


class VerifyResetTokenView(APIView):
    """
    Tell the reset screen whether a link is still usable.
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = VerifyTokenSerializer(data=request.data)
        return Response({"valid": serializer.is_valid()}, status=status.HTTP_200_OK)


class ResetPasswordView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"detail": "Password reset failed.", **serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        user = serializer.save()
        logger.info("Password reset completed for user %s", user.pk)
        return Response(
            {"detail": "Password has been reset successfully."}, status=status.HTTP_200_OK
        )


class CurrentUserView(APIView):
    """
    Current user with roles and flattened permissions.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(user_payload(request.user))


class SessionLoginView(LoginView):
    """
    Session login for the printable report and receipt pages.
    """

    template_name = "core/login.html"
    redirect_authenticated_user = True


class SessionLogoutView(LogoutView):
    pass
