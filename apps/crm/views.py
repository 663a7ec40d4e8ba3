"""
Customer management endpoints.
"""

import logging

from django.db.models import Avg, Count, Q
from django.utils import timezone

from rest_framework.response import Response

from apps.core.entities import EntityViewSet
from apps.core.models import STATUS_ACTIVE
from apps.core.resource_views import view_and_manage

from .models import Customer
from .serializers import CustomerSerializer

logger = logging.getLogger(__name__)

VIP_LOYALTY_POINTS = 500


class CustomerViewSet(EntityViewSet):
    """
    Customers, plus ``stats`` for the summary cards above the list.
    """

    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    entity_name = "customer"
    entity_name_plural = "customers"
    sortable_fields = (
        "name",
        "customer_number",
        "phone",
        "customer_type",
        "total_purchases",
        "loyalty_points",
        "status",
        "created_at",
    )
    required_permissions = {
        **view_and_manage("view_customers", "manage_customers"),
        "stats": ["view_customers", "manage_customers"],
    }
    csv_fields = [
        "customer_number",
        "name",
        "phone",
        "email",
        "customer_type",
        "total_purchases",
        "loyalty_points",
        "status",
    ]

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        customer_type = self.request.query_params.get("customer_type")
        if customer_type:
            queryset = queryset.filter(customer_type=customer_type)
        return queryset

    def stats(self, request):
        month_start = timezone.localdate().replace(day=1)
        totals = self.get_queryset().aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(status=STATUS_ACTIVE)),
            new_this_month=Count("id", filter=Q(created_at__date__gte=month_start)),
            wholesale=Count("id", filter=Q(customer_type=Customer.WHOLESALE)),
            vip=Count("id", filter=Q(loyalty_points__gte=VIP_LOYALTY_POINTS)),
            average_value=Avg("total_purchases"),
        )
        average = totals["average_value"]
        totals["average_value"] = f"{average:.2f}" if average is not None else "0.00"
        return Response(totals)
