from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for the email-based user model with its role.
    """

    list_display = [
        "email",
        "name",
        "role",
        "is_active",
        "is_staff",
        "created_at",
    ]

    list_filter = ["role", "is_active", "is_staff", "is_superuser"]

    search_fields = ["email", "name"]

    ordering = ["-created_at"]

    readonly_fields = ["id", "created_at", "last_login"]

    fieldsets = (
        ("Account Information", {"fields": ("id", "email", "password")}),
        ("Personal Information", {"fields": ("name", "birth_date")}),
        (
            "Permissions",
            {
                "fields": (
                    "role",
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Important Dates", {"fields": ("created_at", "last_login")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "name", "role", "password1", "password2"),
            },
        ),
    )
