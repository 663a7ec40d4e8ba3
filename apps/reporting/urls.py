"""
URL configuration for reports.
"""

from django.urls import path

from . import views

app_name = "reporting"

urlpatterns = [
    path("reports/", views.ReportIndexView.as_view(), name="report_index"),
    path("api/reports/dashboard/", views.DashboardView.as_view(), name="dashboard"),
    path("api/reports/<slug:report_key>/", views.ReportView.as_view(), name="report"),
]
