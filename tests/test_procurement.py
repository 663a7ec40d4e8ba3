"""
Tests for suppliers, the purchase order workflow and goods receiving.
"""

from decimal import Decimal

from django.urls import reverse

import pytest

from apps.core.exceptions import DomainError
from apps.inventory.models import StockMovement
from apps.procurement.models import PurchaseOrder, PurchaseOrderItem, Supplier
from apps.procurement.services import GoodsReceiptService


@pytest.fixture
def purchase_order(organization, supplier, product, second_product, admin_user):
    order = PurchaseOrder.objects.create(
        organization=organization, supplier=supplier, created_by=admin_user
    )
    PurchaseOrderItem.objects.create(
        purchase_order=order, product=product, quantity=10, unit_cost=Decimal("85.00")
    )
    PurchaseOrderItem.objects.create(
        purchase_order=order, product=second_product, quantity=4, unit_cost=Decimal("260.00")
    )
    order.calculate_totals()
    return order


def _receive_line(item, received, free=0, unit_cost="90.00", selling_price="130.00"):
    return {
        "purchase_order_item": item,
        "received_quantity": received,
        "free_quantity": free,
        "unit_cost": Decimal(unit_cost),
        "selling_price": Decimal(selling_price),
    }


@pytest.mark.django_db
class TestSuppliers:
    def test_create_with_bank_accounts(self, authenticated_client):
        response = authenticated_client.post(
            reverse("procurement:supplier-list"),
            {
                "name": "Hill Country Tea",
                "code": "SUP-010",
                "phone": "+94 81 222 3333",
                "bank_accounts": [
                    {"bank_name": "Sampath Bank", "account_number": "1002003004"},
                    {
                        "bank_name": "Commercial Bank",
                        "account_number": "8009007006",
                        "is_default": True,
                    },
                ],
            },
            format="json",
        )

        assert response.status_code == 201
        supplier = Supplier.objects.get(code="SUP-010")
        assert supplier.bank_accounts.count() == 2
        assert supplier.default_bank_account.bank_name == "Commercial Bank"

    def test_only_one_default_account(self, authenticated_client):
        response = authenticated_client.post(
            reverse("procurement:supplier-list"),
            {
                "name": "Hill Country Tea",
                "code": "SUP-010",
                "phone": "0812223333",
                "bank_accounts": [
                    {"bank_name": "Sampath", "account_number": "10020030", "is_default": True},
                    {"bank_name": "HNB", "account_number": "80090070", "is_default": True},
                ],
            },
            format="json",
        )
        assert response.status_code == 400
        assert "bank_accounts" in response.json()

    def test_update_replaces_missing_accounts(self, authenticated_client, supplier):
        supplier.bank_accounts.create(bank_name="Sampath", account_number="10020030")
        url = reverse("procurement:supplier-detail", args=[supplier.pk])
        response = authenticated_client.patch(
            url,
            {"bank_accounts": [{"bank_name": "HNB", "account_number": "80090070"}]},
            format="json",
        )
        assert response.status_code == 200
        assert list(supplier.bank_accounts.values_list("bank_name", flat=True)) == ["HNB"]

    def test_invalid_phone(self, authenticated_client):
        response = authenticated_client.post(
            reverse("procurement:supplier-list"),
            {"name": "Bad Phone", "code": "SUP-011", "phone": "call me"},
            format="json",
        )
        assert response.status_code == 400
        assert "phone" in response.json()

    def test_duplicate_code(self, authenticated_client, supplier):
        response = authenticated_client.post(
            reverse("procurement:supplier-list"),
            {"name": "Copy", "code": "sup-001", "phone": "0771234567"},
            format="json",
        )
        assert response.status_code == 400
        assert "code" in response.json()


@pytest.mark.django_db
class TestPurchaseOrders:
    def test_create_calculates_totals_and_number(self, authenticated_client, supplier, product):
        response = authenticated_client.post(
            reverse("procurement:purchase_order-list"),
            {
                "supplier": str(supplier.pk),
                "items": [{"product": str(product.pk), "quantity": 12, "unit_cost": "82.50"}],
            },
            format="json",
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "DRAFT"
        assert data["po_number"].startswith("PO-")
        assert data["po_number"].endswith("-00001")
        assert data["subtotal"] == "990.00"
        assert data["total_amount"] == "990.00"

    def test_order_needs_items(self, authenticated_client, supplier):
        response = authenticated_client.post(
            reverse("procurement:purchase_order-list"),
            {"supplier": str(supplier.pk), "items": []},
            format="json",
        )
        assert response.status_code == 400
        assert "items" in response.json()

    def test_workflow(self, authenticated_client, purchase_order):
        approve = reverse("procurement:purchase_order_approve", args=[purchase_order.pk])
        send = reverse("procurement:purchase_order_send", args=[purchase_order.pk])
        cancel = reverse("procurement:purchase_order_cancel", args=[purchase_order.pk])

        assert authenticated_client.post(send).status_code == 400
        assert authenticated_client.post(approve).json()["data"]["status"] == "APPROVED"
        assert authenticated_client.post(send).json()["data"]["status"] == "SENT"

        response = authenticated_client.post(cancel)
        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Cannot cancel a purchase order in sent to supplier status."
        )

    def test_only_drafts_are_editable(self, authenticated_client, purchase_order, admin_user):
        purchase_order.approve(admin_user)
        purchase_order.save()
        url = reverse("procurement:purchase_order-detail", args=[purchase_order.pk])

        response = authenticated_client.patch(url, {"notes": "Rush"}, format="json")
        assert response.status_code == 400
        assert authenticated_client.delete(url).status_code == 400

    def test_print_and_pdf(self, authenticated_client, purchase_order):
        response = authenticated_client.get(
            reverse("procurement:purchase_order_print", args=[purchase_order.pk])
        )
        assert purchase_order.po_number in response.content.decode()

        response = authenticated_client.get(
            reverse("procurement:purchase_order_pdf", args=[purchase_order.pk])
        )
        assert response["Content-Type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")


@pytest.mark.django_db
class TestGoodsReceipt:
    def test_draft_orders_cannot_receive(self, purchase_order, admin_user):
        item = purchase_order.items.first()
        with pytest.raises(DomainError):
            GoodsReceiptService.receive(
                purchase_order, admin_user, [_receive_line(item, 1)], "INV-1"
            )

    def test_partial_then_complete(self, purchase_order, admin_user, product, second_product):
        purchase_order.approve(admin_user)
        purchase_order.save()
        first = purchase_order.items.get(product=product)
        second = purchase_order.items.get(product=second_product)

        grn = GoodsReceiptService.receive(
            purchase_order, admin_user, [_receive_line(first, 6, free=2)], "SUPINV-1"
        )
        purchase_order.refresh_from_db()
        product.refresh_from_db()

        assert purchase_order.status == PurchaseOrder.PARTIALLY_RECEIVED
        assert grn.grn_number.startswith("GRN-")
        assert grn.total_value == Decimal("540.00")
        # Free units go into stock but not against the order
        assert product.quantity == 58
        assert product.cost_price == Decimal("90.00")
        assert product.retail_price == Decimal("130.00")
        movement = product.movements.first()
        assert movement.movement_type == StockMovement.GRN
        assert movement.reference == grn.grn_number

        GoodsReceiptService.receive(
            purchase_order,
            admin_user,
            [
                _receive_line(first, 4),
                _receive_line(second, 4, unit_cost="255.00", selling_price="300.00"),
            ],
            "SUPINV-2",
        )
        purchase_order.refresh_from_db()
        second_product.refresh_from_db()

        assert purchase_order.status == PurchaseOrder.COMPLETED
        assert purchase_order.completed_at is not None
        # Wholesale is clamped to the new retail price
        assert second_product.retail_price == Decimal("300.00")
        assert second_product.wholesale_price == Decimal("300.00")

    def test_cannot_receive_more_than_ordered(self, purchase_order, admin_user):
        purchase_order.approve(admin_user)
        purchase_order.save()
        item = purchase_order.items.get(quantity=4)
        with pytest.raises(DomainError):
            GoodsReceiptService.receive(
                purchase_order, admin_user, [_receive_line(item, 5)], "SUPINV-3"
            )
        item.refresh_from_db()
        assert item.received_quantity == 0

    def test_grn_api(self, authenticated_client, purchase_order, admin_user):
        purchase_order.approve(admin_user)
        purchase_order.save()
        item = purchase_order.items.get(quantity=10)

        response = authenticated_client.post(
            reverse("procurement:grn-list"),
            {
                "purchase_order": str(purchase_order.pk),
                "invoice_number": "SUPINV-9",
                "items": [
                    {
                        "purchase_order_item": str(item.pk),
                        "received_quantity": 10,
                        "unit_cost": "85.00",
                        "selling_price": "125.00",
                    }
                ],
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["detail"] == "GRN added successfully"
        assert response.json()["data"]["total_value"] == "850.00"

        response = authenticated_client.get(
            reverse("procurement:grn-list"), {"purchase_order": str(purchase_order.pk)}
        )
        assert response.json()["pagination"]["total_items"] == 1

    def test_grn_api_rejects_draft_order(self, authenticated_client, purchase_order):
        item = purchase_order.items.get(quantity=10)
        response = authenticated_client.post(
            reverse("procurement:grn-list"),
            {
                "purchase_order": str(purchase_order.pk),
                "invoice_number": "SUPINV-9",
                "items": [
                    {
                        "purchase_order_item": str(item.pk),
                        "received_quantity": 1,
                        "unit_cost": "85.00",
                        "selling_price": "125.00",
                    }
                ],
            },
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to add GRN"
