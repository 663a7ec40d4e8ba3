"""
Django admin configuration for core models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import BusinessSettings, Branch, Employee, Organization, Role, User


class BusinessSettingsInline(admin.StackedInline):
    model = BusinessSettings
    can_delete = False


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    """Admin interface for Organization model."""

    list_display = ["name", "code", "city", "subscription_plan", "status", "is_multi_branch"]

    list_filter = ["status", "subscription_plan", "is_multi_branch", "created_at"]

    search_fields = ["name", "code", "owner_email", "city", "id"]

    readonly_fields = ["id", "created_at", "updated_at"]

    fieldsets = (
        ("Basic Information", {"fields": ("id", "name", "code", "owner_email", "city", "logo")}),
        ("Subscription", {"fields": ("subscription_plan", "is_multi_branch")}),
        ("Status", {"fields": ("status",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    inlines = [BusinessSettingsInline]

    ordering = ["name"]


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    """Admin interface for Branch model."""

    list_display = ["name", "code", "organization", "city", "is_main_branch", "is_active"]

    list_filter = ["is_active", "is_main_branch", "organization"]

    search_fields = ["name", "code", "address", "phone", "organization__name"]

    readonly_fields = ["id", "created_at", "updated_at"]

    fieldsets = (
        ("Basic Information", {"fields": ("id", "organization", "name", "code")}),
        ("Contact Information", {"fields": ("address", "city", "phone", "email")}),
        ("Manager", {"fields": ("manager_name", "manager_email", "manager_phone")}),
        ("Opening Hours", {"fields": ("opening_time", "closing_time")}),
        ("Status", {"fields": ("is_active", "is_main_branch")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    ordering = ["organization", "name"]


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ["name", "organization", "created_at"]
    list_filter = ["organization"]
    search_fields = ["name", "description"]


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for User model."""

    list_display = [
        "email",
        "username",
        "first_name",
        "last_name",
        "organization",
        "branch",
        "status",
        "is_superuser",
    ]

    list_filter = ["status", "is_staff", "is_superuser", "organization"]

    search_fields = ["username", "email", "first_name", "last_name", "phone", "organization__name"]

    readonly_fields = ["date_joined", "last_login"]

    filter_horizontal = ["roles", "groups", "user_permissions"]

    fieldsets = (
        (None, {"fields": ("email", "username", "password")}),
        ("Personal Information", {"fields": ("first_name", "last_name", "phone")}),
        ("Organization & Roles", {"fields": ("organization", "branch", "roles", "status")}),
        (
            "Permissions",
            {"fields": ("is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important Dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "username", "organization", "password1", "password2"),
            },
        ),
    )

    ordering = ["email"]


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = [
        "employee_number",
        "first_name",
        "last_name",
        "designation",
        "organization",
        "status",
    ]
    list_filter = ["status", "organization"]
    search_fields = ["employee_number", "first_name", "last_name", "email", "phone"]
    readonly_fields = ["employee_number", "created_at", "updated_at"]
