"""
Tests for the sales reports, their exports and the dashboard.
"""

from decimal import Decimal
from io import BytesIO

from django.test import Client
from django.urls import reverse

import openpyxl
import pytest
from rest_framework import status
from rest_framework.test import APIClient

from apps.reporting.reports import DailySalesReport, SalesByProductReport, parse_date
from apps.sales.cart import ADD_ITEM, CartState, reduce_cart
from apps.sales.models import Payment, Sale
from apps.sales.services import CheckoutService, RefundService


def sell(user, lines, payment_method=Sale.CASH, card=None):
    state = CartState()
    for product, quantity in lines:
        for _ in range(quantity):
            state = reduce_cart(state, {"type": ADD_ITEM, "payload": {"product": product}})
    cash_in = Decimal("100000") if payment_method == Sale.CASH else Decimal("0")
    return CheckoutService.checkout(
        user, user.organization, state, payment_method, cash_in=cash_in, card=card
    )


@pytest.fixture
def sales(admin_user, product, second_product):
    """
    Three sales today, one of them refunded:

    - INV-00001 cash: 3 ginger beer + 1 orange juice = 760 + 60.80 tax
    - INV-00002 Visa, refunded: 2 ginger beer = 240 + 19.20 tax
    - INV-00003 MasterCard without auth code: 1 orange juice = 400 + 32 tax
    """
    first = sell(admin_user, [(product, 3), (second_product, 1)])
    second = sell(
        admin_user,
        [(product, 2)],
        Sale.CARD,
        card={"card_type": Payment.VISA, "last4": "1111", "auth_code": "AUTH1"},
    )
    third = sell(admin_user, [(second_product, 1)], Sale.CARD, card={"card_type": "MasterCard"})
    RefundService.refund(second, admin_user, "Wrong flavour")
    return first, second, third


def report_url(key):
    return reverse("reporting:report", args=[key])


class TestParseDate:
    def test_valid(self):
        assert parse_date("2024-03-01", None).isoformat() == "2024-03-01"

    def test_invalid_falls_back(self):
        assert parse_date("03/01/2024", "fallback") == "fallback"
        assert parse_date("", "fallback") == "fallback"


@pytest.mark.django_db
class TestSalesByProduct:
    def test_rows_and_stats(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("sales-by-product"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["report"] == "sales-by-product"
        rows = response.data["rows"]
        assert [(row["name"], row["sold"]) for row in rows] == [
            ("Ginger Beer 500ml", 3),
            ("Orange Juice 1l", 2),
        ]
        ginger = rows[0]
        assert ginger["sku"] == "BEV-001"
        assert ginger["category"] == "Beverages"
        assert ginger["brand"] == "Elephant House"
        assert ginger["price"] == Decimal("120.00")
        assert ginger["sales"] == Decimal("360.00")
        assert ginger["profit"] == Decimal("120.00")

        stats = response.data["stats"]
        assert stats["total_sold"] == 5
        assert stats["total_revenue"] == Decimal("1160.00")
        assert stats["total_profit"] == Decimal("420.00")
        assert stats["top_selling_item"] == "Ginger Beer 500ml"
        assert stats["top_revenue_item"] == "Orange Juice 1l"

    def test_filters(self, authenticated_client, sales):
        response = authenticated_client.get(
            report_url("sales-by-product"), {"brand": "elephant house"}
        )
        assert [row["sku"] for row in response.data["rows"]] == ["BEV-001"]

        response = authenticated_client.get(report_url("sales-by-product"), {"search": "juice"})
        assert [row["sku"] for row in response.data["rows"]] == ["BEV-002"]
        assert response.data["filters"]["search"] == "juice"

    def test_date_range_outside_sales(self, authenticated_client, sales):
        response = authenticated_client.get(
            report_url("sales-by-product"), {"date_from": "2001-01-01", "date_to": "2001-01-31"}
        )

        assert response.data["rows"] == []
        assert response.data["stats"]["top_selling_item"] is None

    def test_swapped_dates(self, organization):
        report = SalesByProductReport(
            organization, {"date_from": "2024-02-10", "date_to": "2024-02-01"}
        )

        assert report.date_from.isoformat() == "2024-02-01"
        assert report.date_to.isoformat() == "2024-02-10"


@pytest.mark.django_db
class TestSalesBySupplier:
    def test_rows_and_stats(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("sales-by-supplier"))

        rows = response.data["rows"]
        assert len(rows) == 1
        row = rows[0]
        assert row["name"] == "Lanka Distributors"
        assert row["category"] == "Beverages"
        assert row["sold"] == 3
        assert row["net_sales"] == Decimal("360.00")
        assert row["profit"] == Decimal("120.00")

        stats = response.data["stats"]
        assert stats["top_supplier"] == "Lanka Distributors"
        assert stats["active_suppliers"] == 1

    def test_category_filter(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("sales-by-supplier"), {"category": "Dairy"})

        assert response.data["rows"] == []


@pytest.mark.django_db
class TestCardReconciliation:
    def test_includes_refund_reversals(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("card-reconciliation"))

        rows = response.data["rows"]
        assert sorted(row["amount"] for row in rows) == [
            Decimal("-259.20"),
            Decimal("259.20"),
            Decimal("432.00"),
        ]
        stats = response.data["stats"]
        assert stats["total_sales"] == Decimal("691.20")
        assert stats["total_refunds"] == Decimal("-259.20")
        assert stats["net_amount"] == Decimal("432.00")
        assert stats["total_count"] == 3
        assert stats["discrepancy_count"] == 1

    def test_filters(self, authenticated_client, sales):
        url = report_url("card-reconciliation")
        response = authenticated_client.get(url, {"card_type": "Visa"})
        assert {row["status"] for row in response.data["rows"]} == {
            Payment.MATCHED,
            Payment.REFUNDED,
        }

        response = authenticated_client.get(url, {"status": "Pending"})
        assert [row["invoice"] for row in response.data["rows"]] == ["INV-00003"]

        response = authenticated_client.get(report_url("card-reconciliation"), {"search": "1111"})
        assert len(response.data["rows"]) == 2


@pytest.mark.django_db
class TestDailySales:
    def test_completed_sales_only(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("daily-sales"))

        rows = response.data["rows"]
        assert len(rows) == 1
        day = rows[0]
        assert day["transactions"] == 2
        assert day["gross"] == Decimal("1160.00")
        assert day["tax"] == Decimal("92.80")
        assert day["net"] == Decimal("1252.80")
        assert day["cash"] == Decimal("820.80")
        assert day["card"] == Decimal("432.00")
        assert response.data["stats"]["average_sale"] == Decimal("626.40")

    def test_empty_period(self, organization):
        report = DailySalesReport(
            organization, {"date_from": "2001-01-01", "date_to": "2001-01-02"}
        )

        assert report.rows() == []
        assert report.stats()["average_sale"] == Decimal("0.00")


@pytest.mark.django_db
class TestReportExports:
    def test_csv(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("sales-by-product"), {"export": "csv"})

        assert response.status_code == status.HTTP_200_OK
        assert response["Content-Type"].startswith("text/csv")
        assert 'filename="sales_by_product_' in response["Content-Disposition"]
        lines = response.content.decode().splitlines()
        assert lines[0] == (
            "Product Name,SKU,Category,Brand,Qty Sold,Unit Price,Total Sales,Total Profit"
        )
        assert lines[1].startswith("Ginger Beer 500ml,BEV-001,Beverages,Elephant House,3,")

    def test_excel(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("daily-sales"), {"export": "xlsx"})

        assert response.status_code == status.HTTP_200_OK
        worksheet = openpyxl.load_workbook(BytesIO(response.content)).active
        assert worksheet["A1"].value == "Daily Sales"
        assert worksheet["A2"].value == "Green Grocers"
        values = [cell.value for row in worksheet.iter_rows() for cell in row]
        assert "Transactions" in values

    def test_pdf(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("card-reconciliation"), {"export": "pdf"})

        assert response.status_code == status.HTTP_200_OK
        assert response["Content-Type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_print(self, authenticated_client, sales):
        response = authenticated_client.get(report_url("sales-by-supplier"), {"export": "print"})

        assert response.status_code == status.HTTP_200_OK
        content = response.content.decode()
        assert "Sales by Supplier" in content
        assert "Lanka Distributors" in content
        assert "All Branches" in content

    def test_unsupported_format(self, authenticated_client):
        response = authenticated_client.get(report_url("daily-sales"), {"export": "docx"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "Unsupported export format: docx"

    def test_unknown_report(self, authenticated_client):
        response = authenticated_client.get(report_url("sales-by-weather"))

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestReportAccess:
    def test_cashier_cannot_read_reports(self, cashier_client):
        response = cashier_client.get(report_url("daily-sales"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_platform_admin_picks_organization(self, platform_admin, organization, sales):
        client = APIClient()
        client.force_authenticate(user=platform_admin)

        response = client.get(report_url("daily-sales"))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = client.get(report_url("daily-sales"), {"organization": str(organization.pk)})
        assert response.status_code == status.HTTP_200_OK
        assert response.data["stats"]["transactions"] == 2

    def test_reports_are_per_organization(self, other_organization, django_user_model, sales):
        from apps.core.models import SUPER_ADMIN_ROLE, Role

        owner = django_user_model.objects.create_user(
            username="baker",
            email="owner@bluebakers.lk",
            password="S3cure-pass!",
            organization=other_organization,
        )
        owner.roles.add(Role.objects.create(organization=other_organization, name=SUPER_ADMIN_ROLE))
        client = APIClient()
        client.force_authenticate(user=owner)

        response = client.get(report_url("daily-sales"))

        assert response.data["rows"] == []


@pytest.mark.django_db
class TestDashboard:
    def test_summary(self, authenticated_client, sales):
        response = authenticated_client.get(reverse("reporting:dashboard"))

        assert response.status_code == status.HTTP_200_OK
        stats = {card["key"]: card["value"] for card in response.data["stats"]}
        assert stats["today_sales"] == Decimal("1252.80")
        assert stats["transactions"] == 2
        assert stats["products"] == 2
        assert stats["customers"] == 0
        assert stats["low_stock"] == 1

        activity = response.data["recent_activity"]
        assert [entry["invoice"] for entry in activity] == ["INV-00003", "INV-00002", "INV-00001"]
        assert activity[1]["type"] == "refund"
        assert activity[0]["customer"] == "Walk-in"


@pytest.mark.django_db
class TestReportIndex:
    def test_lists_reports_with_export_links(self, admin_user):
        client = Client()
        client.force_login(admin_user)

        response = client.get(reverse("reporting:report_index"))

        assert response.status_code == 200
        content = response.content.decode()
        assert "Card Reconciliation" in content
        assert "/api/reports/daily-sales/?export=xlsx" in content
        assert "?export=json" not in content

    def test_requires_login(self):
        response = Client().get(reverse("reporting:report_index"))

        assert response.status_code == 302
        assert response.url.startswith("/accounts/login/")

    def test_requires_report_permission(self, cashier_user):
        client = Client()
        client.force_login(cashier_user)

        response = client.get(reverse("reporting:report_index"))

        assert response.status_code == 403
