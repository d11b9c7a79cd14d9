"""
Serializers for user registration, login and profile management.

This module provides serializers for account registration with Django's
password validators, JWT login by username or email, and the profile view.
"""

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework.validators import UniqueValidator
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

# Get structured logger for this module
logger = logging.getLogger(__name__)
User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public profile of the authenticated user."""

    class Meta:
        model = User
        fields = ("id", "username", "email", "first_name", "last_name", "date_joined")
        read_only_fields = ("id", "date_joined")


class RegisterSerializer(serializers.ModelSerializer):
    """
    Serializer for account registration.

    Password strength is checked with Django's configured validators and the
    password is stored hashed.
    """

    username = serializers.CharField(
        min_length=3,
        max_length=150,
        validators=[
            UniqueValidator(
                queryset=User.objects.all(),
                message="This username is already taken. Please choose a different one.",
            )
        ],
    )
    email = serializers.EmailField(
        validators=[
            UniqueValidator(
                queryset=User.objects.all(),
                message="An account with this email already exists.",
                lookup="iexact",
            )
        ]
    )
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        help_text="Must meet password strength requirements",
    )

    class Meta:
        model = User
        fields = ("id", "username", "email", "password")
        read_only_fields = ("id",)

    def validate_email(self, value):
        return value.strip().lower()

    def create(self, validated_data):
        user = User.objects.create_user(
            username=validated_data["username"].strip(),
            email=validated_data["email"],
            password=validated_data["password"],
        )

        logger.info(
            "User registered",
            extra={
                "user_id": user.id,
                "username": user.username,
                "action": "user_registered",
                "component": "RegisterSerializer",
            },
        )
        return user


class LoginSerializer(TokenObtainPairSerializer):
    """
    JWT login supporting both username and email authentication.

    An email is resolved to its username before the standard simplejwt
    credential check runs.
    """

    email = serializers.EmailField(required=False, allow_blank=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields[self.username_field].required = False
        self.fields[self.username_field].allow_blank = True

    def validate(self, attrs):
        username = (attrs.get(self.username_field) or "").strip()
        email = (attrs.pop("email", "") or "").strip()

        if not username and not email:
            logger.warning(
                "Login validation failed - missing credentials",
                extra={
                    "action": "validation_failure",
                    "component": "LoginSerializer",
                    "reason": "missing_credentials",
                    "severity": "medium",
                },
            )
            raise serializers.ValidationError(
                {"non_field_errors": "Either username or email is required for authentication."}
            )

        if not username:
            user_obj = User.objects.filter(email__iexact=email).only("username").first()
            # Unknown emails fall through to simplejwt's generic credential error
            username = user_obj.username if user_obj else email
            logger.debug(
                "Resolved email to username for authentication",
                extra={
                    "email": email,
                    "resolved": bool(user_obj),
                    "action": "email_to_username_resolution",
                    "component": "LoginSerializer",
                },
            )

        attrs[self.username_field] = username
        data = super().validate(attrs)

        logger.info(
            "Authentication successful",
            extra={
                "user_id": self.user.id,
                "auth_method": "username" if not email else "email",
                "action": "authentication_success",
                "component": "LoginSerializer",
            },
        )

        data["user"] = UserSerializer(self.user).data
        return data
