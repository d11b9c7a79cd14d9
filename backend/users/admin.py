"""
Django admin configuration for CustomUser model.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    """Default UserAdmin with email shown and searchable."""

    list_display = ("username", "email", "is_active", "is_staff", "date_joined")
    search_fields = ("username", "email")

    # Email is required on the create form as well
    add_fieldsets = UserAdmin.add_fieldsets + (
        ("Contact", {"fields": ("email",)}),
    )
