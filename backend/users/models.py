"""
User model for the personal finance application.

Every goal, ledger row and scheduled transaction is owned by a CustomUser.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """
    Custom user model extending Django's AbstractUser.

    Email is unique so users can sign in with either username or email.
    """

    # Email field - unique and required for all users
    email = models.EmailField(
        unique=True,
        blank=False,
        help_text="User's unique email address, required for all accounts",
    )

    def __str__(self):
        return self.username or f"User {self.id} ({self.email})"
