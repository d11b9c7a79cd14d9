"""
Views for user registration, JWT session management and the user profile.
"""

import logging

from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import LoginSerializer, RegisterSerializer, UserSerializer

# Get logger for this module
logger = logging.getLogger(__name__)


class RegisterView(generics.CreateAPIView):
    """
    Create an account and return a JWT pair so the client is signed in
    immediately.
    """

    serializer_class = RegisterSerializer
    permission_classes = [permissions.AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "user": UserSerializer(user).data,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(TokenObtainPairView):
    serializer_class = LoginSerializer


class LogoutView(APIView):
    """
    Logout view that blacklists refresh tokens.

    Always answers 200 so the response does not reveal whether the token was
    valid.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        refresh_token = request.data.get("refresh", "")

        # Attempt to blacklist token if valid format is provided
        if refresh_token and isinstance(refresh_token, str) and "." in refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
                logger.info(
                    "Refresh token blacklisted",
                    extra={
                        "action": "logout_token_blacklisted",
                        "component": "LogoutView",
                    },
                )
            except TokenError as e:
                logger.warning(
                    "Token blacklisting failed",
                    extra={
                        "error_message": str(e),
                        "action": "logout_blacklist_failed",
                        "component": "LogoutView",
                        "severity": "low",
                    },
                )
        else:
            logger.debug(
                "Logout without a usable refresh token",
                extra={
                    "action": "logout_without_token",
                    "component": "LogoutView",
                },
            )

        return Response({"detail": "Successfully logged out."}, status=status.HTTP_200_OK)


class MeView(generics.RetrieveUpdateAPIView):
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ["get", "patch", "head", "options"]

    def get_object(self):
        return self.request.user
