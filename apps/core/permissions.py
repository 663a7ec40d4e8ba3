"""
Permission classes for organization-scoped, role-based access control.
"""

from django.core.exceptions import PermissionDenied

from rest_framework import permissions


def _as_list(codes):
    if not codes:
        return []
    if isinstance(codes, str):
        return [codes]
    return list(codes)


class HasOrganizationAccess(permissions.BasePermission):
    """
    Users may only touch records of their own organization.

    Platform admins (superusers) are not bound to an organization.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_platform_admin() or user.organization_id is not None

    def has_object_permission(self, request, view, obj):
        if request.user.is_platform_admin():
            return True
        organization_id = getattr(obj, "organization_id", None)
        if organization_id is None:
            return True
        return organization_id == request.user.organization_id


class HasModulePermission(permissions.BasePermission):
    """
    Check the permission codes a view declares for the current action.

    Views declare ``required_permissions`` as a mapping of viewset action (or
    lower-cased HTTP method for plain API views) to one code or a list of
    codes. Holding any one of the listed codes is enough. A ``"*"`` key is the
    fallback for actions not listed.
    """

    message = "You do not have permission to perform this action."

    def get_required(self, request, view):
        required = getattr(view, "required_permissions", None) or {}
        action = getattr(view, "action", None) or request.method.lower()
        if action in required:
            return _as_list(required[action])
        return _as_list(required.get("*"))

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        codes = self.get_required(request, view)
        if not codes:
            return True
        return user.has_any_permission(codes)


class OrganizationPermissionMixin:
    """
    Mixin for server-rendered views: user needs an organization and, when
    ``permission_codes`` is set, any one of those codes.
    """

    permission_codes = []

    def dispatch(self, request, *args, **kwargs):
        user = request.user
        if user.is_authenticated:
            if not user.is_platform_admin() and not user.organization_id:
                raise PermissionDenied("Access denied. User must belong to an organization.")
            if self.permission_codes and not user.has_any_permission(self.permission_codes):
                raise PermissionDenied("You do not have permission to view this page.")
        return super().dispatch(request, *args, **kwargs)
