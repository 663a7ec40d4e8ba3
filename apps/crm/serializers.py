"""
Serializers for customers.
"""

from rest_framework import serializers

from apps.core.serializers import OrganizationScopedSerializer

from .models import Customer


class CustomerSerializer(OrganizationScopedSerializer):
    customer_type_display = serializers.CharField(
        source="get_customer_type_display", read_only=True
    )

    class Meta:
        model = Customer
        fields = [
            "id",
            "organization",
            "customer_number",
            "name",
            "phone",
            "email",
            "address",
            "customer_type",
            "customer_type_display",
            "credit_limit",
            "total_purchases",
            "loyalty_points",
            "status",
            "notes",
            "last_purchase_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "organization",
            "customer_number",
            "total_purchases",
            "loyalty_points",
            "last_purchase_at",
            "created_at",
            "updated_at",
        ]
        extra_kwargs = {"name": {"min_length": 2}}

    def validate_phone(self, value):
        return self.check_unique_in_organization(
            "phone", value.strip(), "A customer with this phone number already exists."
        )


class CustomerLookupSerializer(serializers.ModelSerializer):
    """Compact customer used by the POS customer picker."""

    class Meta:
        model = Customer
        fields = ["id", "customer_number", "name", "phone", "customer_type", "loyalty_points"]
