"""
Tests for the POS: session cart, checkout, held carts, refunds and receipts.
"""

from decimal import Decimal

from django.urls import reverse

import pytest
from rest_framework import status
from rest_framework.test import APIClient

from apps.core.models import Role
from apps.inventory.models import StockMovement
from apps.sales.models import HeldCart, Payment, Sale


def cart_action(client, action_type, **payload):
    return client.post(
        reverse("sales:pos_cart_actions"),
        {"type": action_type, "payload": payload},
        format="json",
    )


def add_product(client, product, times=1):
    response = None
    for _ in range(times):
        response = cart_action(client, "ADD_ITEM", product_id=str(product.pk))
    return response


def checkout(client, **data):
    return client.post(reverse("sales:pos_checkout"), data, format="json")


@pytest.fixture
def completed_sale(authenticated_client, product):
    """Two ginger beers paid by card: 240 + 8% tax = 259.20."""
    add_product(authenticated_client, product, times=2)
    response = checkout(
        authenticated_client,
        payment_method="CARD",
        card={"card_type": "Visa", "last4": "4242", "auth_code": "A1B2C3"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    return Sale.objects.get(pk=response.data["data"]["id"])


@pytest.mark.django_db
class TestCartActions:
    def test_empty_cart(self, authenticated_client):
        response = authenticated_client.get(reverse("sales:pos_cart"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["cart"]["items"] == []
        assert response.data["totals"]["net_total"] == "0.00"

    def test_add_by_id_increments_quantity(self, authenticated_client, product):
        add_product(authenticated_client, product)
        response = add_product(authenticated_client, product)

        items = response.data["cart"]["items"]
        assert len(items) == 1
        assert items[0]["quantity"] == 2
        assert items[0]["price"] == "120.00"
        assert response.data["totals"]["subtotal"] == "240.00"
        assert response.data["totals"]["tax"] == "19.20"
        assert response.data["totals"]["net_total"] == "259.20"

    def test_add_by_scanned_barcode(self, authenticated_client, product):
        response = cart_action(authenticated_client, "ADD_ITEM", barcode="8901234567890")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["cart"]["items"][0]["name"] == "Ginger Beer 500ml"

    def test_unknown_product(self, authenticated_client, product):
        response = cart_action(authenticated_client, "ADD_ITEM", barcode="0000000000000")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_cannot_add_more_than_stock(self, authenticated_client, second_product):
        add_product(authenticated_client, second_product, times=5)
        response = add_product(authenticated_client, second_product)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Insufficient stock for Orange Juice 1l" in response.data["detail"]
        cart = authenticated_client.get(reverse("sales:pos_cart")).data["cart"]
        assert cart["items"][0]["quantity"] == 5

    def test_update_discount_and_remove(self, authenticated_client, product, second_product):
        add_product(authenticated_client, product)
        add_product(authenticated_client, second_product)

        response = cart_action(
            authenticated_client, "UPDATE_ITEM", product_id=str(product.pk), discount="10"
        )
        assert response.data["totals"]["item_discount"] == "12.00"

        response = cart_action(authenticated_client, "REMOVE_ITEM", product_id=str(product.pk))
        assert [item["name"] for item in response.data["cart"]["items"]] == ["Orange Juice 1l"]

    def test_update_rejects_fractional_quantity(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = cart_action(
            authenticated_client, "UPDATE_ITEM", product_id=str(product.pk), quantity="2.5"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "quantity" in response.data
        cart = authenticated_client.get(reverse("sales:pos_cart")).data["cart"]
        assert cart["items"][0]["quantity"] == 1

    def test_update_rejects_non_numeric_discount(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = cart_action(
            authenticated_client, "UPDATE_ITEM", product_id=str(product.pk), discount="ten"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "discount" in response.data

    def test_update_quantity_within_stock(self, authenticated_client, second_product):
        add_product(authenticated_client, second_product)

        response = cart_action(
            authenticated_client, "UPDATE_ITEM", product_id=str(second_product.pk), quantity=5
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["cart"]["items"][0]["quantity"] == 5

    def test_update_quantity_beyond_stock(self, authenticated_client, second_product):
        add_product(authenticated_client, second_product)

        response = cart_action(
            authenticated_client, "UPDATE_ITEM", product_id=str(second_product.pk), quantity=1005
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Insufficient stock for Orange Juice 1l" in response.data["detail"]
        cart = authenticated_client.get(reverse("sales:pos_cart")).data["cart"]
        assert cart["items"][0]["quantity"] == 1

    def test_update_quantity_down_is_not_stock_checked(
        self, authenticated_client, second_product
    ):
        add_product(authenticated_client, second_product, times=5)
        second_product.quantity = 1
        second_product.save()

        response = cart_action(
            authenticated_client, "UPDATE_ITEM", product_id=str(second_product.pk), quantity=3
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["cart"]["items"][0]["quantity"] == 3

    def test_set_customer(self, authenticated_client, customer):
        response = cart_action(authenticated_client, "SET_CUSTOMER", customer=str(customer.pk))

        assert response.data["cart"]["customer"]["name"] == "Kamal Fernando"

        response = cart_action(authenticated_client, "SET_CUSTOMER", customer=None)
        assert response.data["cart"]["customer"] is None

    def test_set_unknown_customer(self, authenticated_client, other_organization):
        from apps.crm.models import Customer

        stranger = Customer.objects.create(
            organization=other_organization, name="Someone Else", phone="0777777777"
        )

        response = cart_action(authenticated_client, "SET_CUSTOMER", customer=str(stranger.pk))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_toggle_wholesale_reprices_lines(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = cart_action(authenticated_client, "TOGGLE_WHOLESALE", is_wholesale=True)

        assert response.data["cart"]["is_wholesale"] is True
        assert response.data["cart"]["items"][0]["price"] == "100.00"

        response = cart_action(authenticated_client, "TOGGLE_WHOLESALE", is_wholesale=False)
        assert response.data["cart"]["items"][0]["price"] == "120.00"

    def test_unknown_action_type(self, authenticated_client):
        response = cart_action(authenticated_client, "EXPLODE")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "type" in response.data

    def test_totals_with_tender(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = authenticated_client.post(
            reverse("sales:pos_cart_totals"),
            {"adjustment": "-0.60", "cash_in": "200"},
            format="json",
        )

        totals = response.data["totals"]
        assert totals["grand_total"] == "129.60"
        assert totals["net_total"] == "129.00"
        assert totals["balance"] == "71.00"

    def test_clear_cart(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = authenticated_client.delete(reverse("sales:pos_cart"))

        assert response.data["cart"]["items"] == []

    def test_carts_are_per_user(self, authenticated_client, cashier_user, product):
        add_product(authenticated_client, product)
        cashier = APIClient()
        cashier.force_authenticate(user=cashier_user)

        response = cashier.get(reverse("sales:pos_cart"))

        assert response.data["cart"]["items"] == []


@pytest.mark.django_db
class TestLookups:
    def test_exact_barcode_match(self, authenticated_client, product, second_product):
        response = authenticated_client.get(reverse("sales:pos_products"), {"q": "8901234567890"})

        assert response.data["exact"] is True
        assert response.data["results"][0]["code"] == "BEV-001"

    def test_name_search(self, authenticated_client, product, second_product):
        response = authenticated_client.get(reverse("sales:pos_products"), {"q": "orange"})

        assert response.data["exact"] is False
        assert [row["code"] for row in response.data["results"]] == ["BEV-002"]

    def test_customer_search(self, authenticated_client, customer):
        response = authenticated_client.get(reverse("sales:pos_customers"), {"q": "07111"})

        assert [row["name"] for row in response.data["results"]] == ["Kamal Fernando"]

    def test_customer_search_needs_query(self, authenticated_client, customer):
        response = authenticated_client.get(reverse("sales:pos_customers"))

        assert response.data["results"] == []

    def test_sellers(self, authenticated_client, admin_user, cashier_user, platform_admin):
        response = authenticated_client.get(reverse("sales:pos_sellers"))

        emails = {row["email"] for row in response.data["results"]}
        assert emails == {admin_user.email, cashier_user.email}


@pytest.mark.django_db
class TestCheckout:
    def test_cash_sale(self, authenticated_client, product, customer, admin_user):
        add_product(authenticated_client, product, times=2)
        cart_action(authenticated_client, "SET_CUSTOMER", customer=str(customer.pk))

        response = checkout(authenticated_client, payment_method="CASH", cash_in="300")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["detail"] == "Sale INV-00001 completed"
        data = response.data["data"]
        assert data["net_total"] == "259.20"
        assert data["balance"] == "40.80"
        assert data["cashier"] == admin_user.pk
        assert data["customer_name"] == "Kamal Fernando"
        assert data["items"][0]["quantity"] == 2

        sale = Sale.objects.get(invoice_number="INV-00001")
        payment = sale.payments.get()
        assert payment.method == Payment.CASH
        assert payment.amount == Decimal("259.20")

        product.refresh_from_db()
        assert product.quantity == 48
        movement = StockMovement.objects.get(product=product, movement_type=StockMovement.SALE)
        assert movement.quantity_change == -2

        customer.refresh_from_db()
        assert customer.total_purchases == Decimal("259.20")
        assert customer.loyalty_points == 2

        cart = authenticated_client.get(reverse("sales:pos_cart")).data["cart"]
        assert cart["items"] == []

    def test_invoice_numbers_increase(self, authenticated_client, product):
        for expected in ("INV-00001", "INV-00002"):
            add_product(authenticated_client, product)
            response = checkout(authenticated_client, payment_method="CASH", cash_in="500")
            assert response.data["detail"] == f"Sale {expected} completed"

    def test_short_cash(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = checkout(authenticated_client, payment_method="CASH", cash_in="100")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "Cash received is less than the net total."
        assert not Sale.objects.exists()
        product.refresh_from_db()
        assert product.quantity == 50

    def test_empty_cart(self, authenticated_client):
        response = checkout(authenticated_client, payment_method="CASH", cash_in="100")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "Cart is empty."

    def test_stock_sold_elsewhere_meanwhile(self, authenticated_client, second_product):
        add_product(authenticated_client, second_product, times=3)
        second_product.quantity = 2
        second_product.save()

        response = checkout(authenticated_client, payment_method="CASH", cash_in="5000")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == (
            "Insufficient stock for Orange Juice 1l. Available: 2, Requested: 3"
        )
        assert not Sale.objects.exists()

    def test_card_with_auth_code_is_matched(self, completed_sale):
        payment = completed_sale.payments.get()

        assert payment.method == Payment.CARD
        assert payment.status == Payment.MATCHED
        assert payment.last4 == "4242"
        assert completed_sale.balance == Decimal("0.00")

    def test_card_without_auth_code_is_pending(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = checkout(authenticated_client, payment_method="CARD")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["data"]["payments"][0]["status"] == Payment.PENDING

    def test_split_payment(self, authenticated_client, product):
        add_product(authenticated_client, product, times=2)

        response = checkout(
            authenticated_client,
            payment_method="SPLIT",
            payments=[
                {"method": "CASH", "amount": "100.00"},
                {"method": "CARD", "amount": "159.20", "card_type": "MasterCard"},
            ],
        )

        assert response.status_code == status.HTTP_201_CREATED
        methods = sorted(p["method"] for p in response.data["data"]["payments"])
        assert methods == ["CARD", "CASH"]

    def test_split_needs_two_payments(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = checkout(
            authenticated_client,
            payment_method="SPLIT",
            payments=[{"method": "CASH", "amount": "129.60"}],
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "A split payment needs at least two payments."

    def test_split_must_cover_net_total(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = checkout(
            authenticated_client,
            payment_method="SPLIT",
            payments=[
                {"method": "CASH", "amount": "50.00"},
                {"method": "CARD", "amount": "50.00"},
            ],
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "Payments total 100.00 but the net total is 129.60."

    def test_split_without_payments(self, authenticated_client, product):
        add_product(authenticated_client, product)

        response = checkout(authenticated_client, payment_method="SPLIT")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "payments" in response.data

    def test_sold_by_other_organization(
        self, authenticated_client, product, other_organization, django_user_model
    ):
        outsider = django_user_model.objects.create_user(
            username="seller",
            email="seller@bluebay.lk",
            password="S3cure-pass!",
            organization=other_organization,
        )
        add_product(authenticated_client, product)

        response = checkout(
            authenticated_client, payment_method="CASH", cash_in="200", sold_by=outsider.pk
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "sold_by" in response.data

    def test_wholesale_sale(self, authenticated_client, product):
        add_product(authenticated_client, product, times=10)
        cart_action(authenticated_client, "TOGGLE_WHOLESALE", is_wholesale=True)

        response = checkout(
            authenticated_client, payment_method="CASH", cash_in="1100", wholesale_discount="5"
        )

        data = response.data["data"]
        assert data["is_wholesale"] is True
        assert data["subtotal"] == "1000.00"
        assert data["wholesale_discount"] == "50.00"
        assert data["tax"] == "76.00"
        assert data["net_total"] == "1026.00"


@pytest.mark.django_db
class TestPosPermissions:
    def test_cashier_can_sell(self, cashier_client, product):
        add_product(cashier_client, product)

        response = checkout(cashier_client, payment_method="CASH", cash_in="200")

        assert response.status_code == status.HTTP_201_CREATED

    def test_user_without_process_sales(self, organization, django_user_model, product):
        role = Role.objects.create(
            organization=organization, name="Storekeeper", permissions=["view_products"]
        )
        user = django_user_model.objects.create_user(
            username="store",
            email="store@greengrocers.lk",
            password="S3cure-pass!",
            organization=organization,
        )
        user.roles.add(role)
        client = APIClient()
        client.force_authenticate(user=user)

        response = add_product(client, product)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_platform_admin_has_no_pos(self, platform_admin):
        client = APIClient()
        client.force_authenticate(user=platform_admin)

        response = client.get(reverse("sales:pos_cart"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_anonymous(self, api_client):
        response = api_client.get(reverse("sales:pos_cart"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestHeldCarts:
    def test_hold_and_resume(self, authenticated_client, product):
        add_product(authenticated_client, product, times=3)

        response = authenticated_client.post(
            reverse("sales:pos_cart_hold"), {"label": "Table 4"}, format="json"
        )
        assert response.status_code == status.HTTP_201_CREATED
        held_id = response.data["data"]["id"]
        assert authenticated_client.get(reverse("sales:pos_cart")).data["cart"]["items"] == []

        held = authenticated_client.get(reverse("sales:pos_cart_held")).data["results"]
        assert [(row["label"], row["item_count"]) for row in held] == [("Table 4", 3)]

        response = authenticated_client.post(reverse("sales:pos_cart_resume", args=[held_id]))
        assert response.status_code == status.HTTP_200_OK
        assert response.data["cart"]["items"][0]["quantity"] == 3
        assert not HeldCart.objects.exists()

    def test_cannot_hold_empty_cart(self, authenticated_client):
        response = authenticated_client.post(reverse("sales:pos_cart_hold"), {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "Cart is empty."

    def test_resume_needs_empty_cart(self, authenticated_client, product, second_product):
        add_product(authenticated_client, product)
        held_id = authenticated_client.post(reverse("sales:pos_cart_hold"), {}, format="json").data[
            "data"
        ]["id"]
        add_product(authenticated_client, second_product)

        response = authenticated_client.post(reverse("sales:pos_cart_resume", args=[held_id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert HeldCart.objects.filter(pk=held_id).exists()


@pytest.mark.django_db
class TestRefunds:
    def test_refund_restocks_and_reverses_card(self, authenticated_client, completed_sale, product):
        response = authenticated_client.post(
            reverse("sales:sale_refund", args=[completed_sale.pk]),
            {"reason": "Damaged bottles"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["detail"] == "Sale INV-00001 refunded"
        assert response.data["data"]["status"] == Sale.REFUNDED
        assert response.data["data"]["refund_reason"] == "Damaged bottles"

        product.refresh_from_db()
        assert product.quantity == 50
        assert StockMovement.objects.filter(
            product=product, movement_type=StockMovement.REFUND, quantity_change=2
        ).exists()

        reversal = completed_sale.payments.get(status=Payment.REFUNDED)
        assert reversal.amount == Decimal("-259.20")

    def test_refund_twice(self, authenticated_client, completed_sale):
        url = reverse("sales:sale_refund", args=[completed_sale.pk])
        authenticated_client.post(url, {}, format="json")

        response = authenticated_client.post(url, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["detail"] == "Failed to refund sale"
        assert "Sale INV-00001 has already been refunded." in response.data["errors"]

    def test_refund_takes_back_loyalty(self, authenticated_client, product, customer):
        add_product(authenticated_client, product, times=10)
        cart_action(authenticated_client, "SET_CUSTOMER", customer=str(customer.pk))
        sale_id = checkout(authenticated_client, payment_method="CASH", cash_in="1500").data[
            "data"
        ]["id"]
        customer.refresh_from_db()
        assert customer.loyalty_points == 12

        authenticated_client.post(reverse("sales:sale_refund", args=[sale_id]), {}, format="json")

        customer.refresh_from_db()
        assert customer.total_purchases == Decimal("0.00")
        assert customer.loyalty_points == 0


@pytest.mark.django_db
class TestSalesHistory:
    def test_list_and_filter(self, authenticated_client, completed_sale, product):
        add_product(authenticated_client, product)
        checkout(authenticated_client, payment_method="CASH", cash_in="200")

        response = authenticated_client.get(reverse("sales:sale-list"))
        assert response.data["pagination"]["total"] == 2
        assert response.data["results"][0]["invoice_number"] == "INV-00002"

        response = authenticated_client.get(reverse("sales:sale-list"), {"payment_method": "CARD"})
        assert [row["invoice_number"] for row in response.data["results"]] == ["INV-00001"]

    def test_other_organization_cannot_see_sale(
        self, completed_sale, other_organization, django_user_model
    ):
        outsider = django_user_model.objects.create_user(
            username="boss",
            email="boss@bluebay.lk",
            password="S3cure-pass!",
            organization=other_organization,
        )
        outsider.roles.add(
            Role.objects.create(
                organization=other_organization, name="Owner", permissions=["process_sales"]
            )
        )
        client = APIClient()
        client.force_authenticate(user=outsider)

        response = client.get(reverse("sales:sale-detail", args=[completed_sale.pk]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_html_receipt(self, authenticated_client, completed_sale):
        response = authenticated_client.get(
            reverse("sales:sale_receipt", args=[completed_sale.pk]), {"layout": "thermal"}
        )

        assert response.status_code == status.HTTP_200_OK
        content = response.content.decode()
        assert "INV-00001" in content
        assert "Ginger Beer 500ml" in content
        assert "80mm auto" in content

    def test_pdf_receipt(self, authenticated_client, completed_sale):
        response = authenticated_client.get(
            reverse("sales:sale_receipt_pdf", args=[completed_sale.pk])
        )

        assert response.status_code == status.HTTP_200_OK
        assert response["Content-Type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert "receipt_INV-00001_standard.pdf" in response["Content-Disposition"]
