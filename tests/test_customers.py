"""
Tests for customer management and loyalty.
"""

from decimal import Decimal

from django.urls import reverse

import pytest

from apps.crm.models import Customer


@pytest.mark.django_db
class TestCustomers:
    def test_create_assigns_number(self, authenticated_client, organization):
        response = authenticated_client.post(
            reverse("crm:customer-list"),
            {
                "name": "Nadeesha Wickramasinghe",
                "phone": "0779876543",
                "customer_type": "wholesale",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["customer_number"] == "CUS-00001"
        assert data["customer_type_display"] == "Wholesale"
        assert data["loyalty_points"] == 0

    def test_phone_unique_within_organization(
        self, authenticated_client, customer, other_organization
    ):
        response = authenticated_client.post(
            reverse("crm:customer-list"), {"name": "Someone Else", "phone": customer.phone}
        )
        assert response.status_code == 400
        assert "phone" in response.json()

        # The same number is fine in another organization
        Customer.objects.create(
            organization=other_organization, name="Kamal F", phone=customer.phone
        )

    def test_read_only_totals_are_ignored(self, authenticated_client, customer):
        response = authenticated_client.patch(
            reverse("crm:customer-detail", args=[customer.pk]),
            {"loyalty_points": 9000, "notes": "Prefers SMS"},
        )
        assert response.status_code == 200
        customer.refresh_from_db()
        assert customer.loyalty_points == 0
        assert customer.notes == "Prefers SMS"

    def test_customer_type_filter(self, authenticated_client, organization, customer):
        Customer.objects.create(
            organization=organization,
            name="City Hotel",
            phone="0112223344",
            customer_type=Customer.WHOLESALE,
        )
        response = authenticated_client.get(
            reverse("crm:customer-list"), {"customer_type": "wholesale"}
        )
        assert [row["name"] for row in response.json()["results"]] == ["City Hotel"]

    def test_stats(self, authenticated_client, organization, customer):
        Customer.objects.create(
            organization=organization,
            name="City Hotel",
            phone="0112223344",
            customer_type=Customer.WHOLESALE,
            total_purchases=Decimal("90000.00"),
            loyalty_points=900,
        )

        data = authenticated_client.get(reverse("crm:customer_stats")).json()
        assert data["total"] == 2
        assert data["active"] == 2
        assert data["new_this_month"] == 2
        assert data["wholesale"] == 1
        assert data["vip"] == 1
        assert data["average_value"] == "45000.00"

    def test_cashier_cannot_open_customer_screen(self, cashier_client):
        assert cashier_client.get(reverse("crm:customer-list")).status_code == 403


@pytest.mark.django_db
class TestLoyalty:
    def test_points_per_hundred_spent(self, customer):
        customer.record_purchase(Decimal("1250.00"))
        assert customer.loyalty_points == 12
        assert customer.total_purchases == Decimal("1250.00")
        assert customer.last_purchase_at is not None

    def test_refund_takes_points_back(self, customer):
        customer.record_purchase(Decimal("1250.00"))
        customer.record_purchase(Decimal("-1250.00"))
        customer.refresh_from_db()
        assert customer.loyalty_points == 0
        assert customer.total_purchases == Decimal("0.00")

    def test_points_never_go_negative(self, customer):
        customer.record_purchase(Decimal("-500.00"))
        assert customer.loyalty_points == 0
