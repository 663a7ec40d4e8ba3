"""
URL configuration for the CRM app.
"""

from django.urls import path

from apps.core.entities import entity_urlpatterns

from .views import CustomerViewSet

app_name = "crm"

urlpatterns = [
    path(
        "api/customers/stats/",
        CustomerViewSet.as_view({"get": "stats"}),
        name="customer_stats",
    ),
    *entity_urlpatterns("api/customers/", CustomerViewSet, "customer"),
]
