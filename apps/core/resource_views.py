"""
Admin resource endpoints for organizations, branches, roles, users and employees.
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import Q

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .entities import EntityViewSet, SortConfig
from .models import Branch, Employee, Organization, Role
from .permissions import HasModulePermission, HasOrganizationAccess
from .permissions_catalogue import PERMISSIONS
from .serializers import (
    BranchSerializer,
    BusinessSettingsSerializer,
    EmployeeSerializer,
    OrganizationSerializer,
    RoleSerializer,
    UserSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def view_and_manage(view_code, manage_code):
    """Read actions need either code, writes need the manage code."""
    readers = [view_code, manage_code]
    return {
        "list": readers,
        "retrieve": readers,
        "create": manage_code,
        "update": manage_code,
        "partial_update": manage_code,
        "destroy": manage_code,
    }


class OrganizationViewSet(EntityViewSet):
    """
    Organizations. Members see their own organization only; creating and
    deleting organizations is reserved to platform admins.
    """

    queryset = Organization.objects.all()
    serializer_class = OrganizationSerializer
    entity_name = "organization"
    entity_name_plural = "organizations"
    sortable_fields = ("name", "code", "city", "subscription_plan", "status", "created_at")
    required_permissions = view_and_manage("view_organizations", "manage_organizations")

    def get_queryset(self):
        user = self.request.user
        queryset = Organization.objects.all()
        if user.is_platform_admin():
            return queryset
        return queryset.filter(pk=user.organization_id)

    def create(self, request, *args, **kwargs):
        if not request.user.is_platform_admin():
            return self.failure_response(
                "add", ["Only platform administrators can add organizations."]
            )
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        organization = serializer.save()
        organization.get_settings()

    def destroy(self, request, *args, **kwargs):
        if not request.user.is_platform_admin():
            return self.failure_response(
                "delete", ["Only platform administrators can remove organizations."]
            )
        return super().destroy(request, *args, **kwargs)


class BranchViewSet(EntityViewSet):
    queryset = Branch.objects.select_related("organization")
    serializer_class = BranchSerializer
    entity_name = "branch"
    entity_name_plural = "branches"
    sortable_fields = ("name", "code", "city", "status", "is_main_branch", "created_at")
    required_permissions = view_and_manage("view_branches", "manage_branches")

    def perform_destroy(self, instance):
        if (
            instance.is_main_branch
            and Branch.objects.filter(organization_id=instance.organization_id)
            .exclude(pk=instance.pk)
            .exists()
        ):
            raise ValueError(
                "The main branch cannot be removed while other branches exist. "
                "Mark another branch as main first."
            )
        instance.delete()


class RoleViewSet(EntityViewSet):
    """
    Roles of the organization plus the global roles.
    """

    queryset = Role.objects.all()
    serializer_class = RoleSerializer
    entity_name = "role"
    entity_name_plural = "roles"
    sortable_fields = ("name", "created_at")
    required_permissions = view_and_manage("manage_users", "manage_users")

    def get_queryset(self):
        user = self.request.user
        queryset = Role.objects.all()
        if user.is_platform_admin():
            return queryset
        return queryset.filter(
            Q(organization_id=user.organization_id) | Q(organization__isnull=True)
        )

    def check_object_permissions(self, request, obj):
        super().check_object_permissions(request, obj)
        if (
            request.method not in permissions.SAFE_METHODS
            and obj.organization_id is None
            and not request.user.is_platform_admin()
        ):
            self.permission_denied(
                request, message="Global roles can only be changed by platform administrators."
            )


class UserViewSet(EntityViewSet):
    queryset = User.objects.select_related("organization", "branch").prefetch_related("roles")
    serializer_class = UserSerializer
    entity_name = "user"
    entity_name_plural = "users"
    sortable_fields = ("email", "username", "first_name", "last_name", "status", "date_joined")
    default_sort = SortConfig("email")
    required_permissions = view_and_manage("manage_users", "manage_users")
    csv_fields = ["email", "username", "first_name", "last_name", "phone", "status", "role_names"]

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ValueError("You cannot remove your own account.")
        instance.delete()


class EmployeeViewSet(EntityViewSet):
    queryset = Employee.objects.select_related("branch", "user")
    serializer_class = EmployeeSerializer
    entity_name = "employee"
    entity_name_plural = "employees"
    sortable_fields = (
        "employee_number",
        "first_name",
        "last_name",
        "designation",
        "hire_date",
        "status",
    )
    default_sort = SortConfig("employee_number")
    required_permissions = view_and_manage("view_employees", "manage_employees")


class BusinessSettingsView(APIView):
    """
    Read or replace the business settings of the user's organization.
    """

    permission_classes = [permissions.IsAuthenticated, HasOrganizationAccess, HasModulePermission]
    required_permissions = {"put": "manage_settings", "patch": "manage_settings"}

    def get_settings(self, request):
        if not request.user.organization_id:
            return None
        return request.user.organization.get_settings()

    def get(self, request):
        settings_obj = self.get_settings(request)
        if settings_obj is None:
            return Response(
                {"detail": "Business settings belong to an organization."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(BusinessSettingsSerializer(settings_obj).data)

    def put(self, request, partial=False):
        settings_obj = self.get_settings(request)
        if settings_obj is None:
            return Response(
                {"detail": "Business settings belong to an organization."},
                status=status.HTTP_404_NOT_FOUND,
            )
        serializer = BusinessSettingsSerializer(settings_obj, data=request.data, partial=partial)
        if not serializer.is_valid():
            return Response(
                {"detail": "Failed to update settings", **serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        serializer.save()
        logger.info("Business settings updated for organization %s", settings_obj.organization_id)
        return Response({"detail": "Changes saved successfully", "data": serializer.data})

    def patch(self, request):
        return self.put(request, partial=True)


class PermissionCatalogueView(APIView):
    """Permission codes grouped by screen, for the role editor."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(PERMISSIONS)
