"""
Report endpoints and the report index page.

``GET /api/reports/<report>/`` returns rows, stats and chart data as JSON;
``?export=csv|xlsx|pdf|print`` returns the same report as a file or a
printable page.
"""

import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import Http404
from django.views.generic import TemplateView

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import DomainError
from apps.core.models import Organization
from apps.core.permissions import (
    HasModulePermission,
    HasOrganizationAccess,
    OrganizationPermissionMixin,
)

from .exports import EXPORT_FORMATS, export_response
from .reports import REPORTS, dashboard_summary

logger = logging.getLogger(__name__)

REPORT_READERS = ["view_reports", "manage_reports"]


def report_organization(request):
    """
    Organization a report is run for. Platform admins pick one with
    ``?organization=``.
    """
    user = request.user
    if user.organization_id:
        return user.organization
    organization_id = request.query_params.get("organization")
    organization = (
        Organization.objects.filter(pk=organization_id).first() if organization_id else None
    )
    if organization is None:
        raise DomainError("Select an organization to report on.")
    return organization


class ReportAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated, HasOrganizationAccess, HasModulePermission]
    required_permissions = {"get": REPORT_READERS}


class ReportView(ReportAPIView):
    def get(self, request, report_key):
        report_class = REPORTS.get(report_key)
        if report_class is None:
            raise Http404("Unknown report")

        export_format = request.query_params.get("export", "json")
        if export_format not in EXPORT_FORMATS:
            return Response(
                {"detail": f"Unsupported export format: {export_format}"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        report = report_class(report_organization(request), request.query_params)
        if export_format == "json":
            return Response(report.as_dict())
        return export_response(report, export_format)


class DashboardView(ReportAPIView):
    def get(self, request):
        return Response(dashboard_summary(report_organization(request)))


class ReportIndexView(LoginRequiredMixin, OrganizationPermissionMixin, TemplateView):
    """Landing page after session login: every report with its export links."""

    template_name = "reporting/index.html"
    permission_codes = REPORT_READERS

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["reports"] = [
            {"key": key, "title": report.title} for key, report in REPORTS.items()
        ]
        context["export_formats"] = [fmt for fmt in EXPORT_FORMATS if fmt != "json"]
        return context
