"""
Tests for the product catalogue: categories, products, stock and barcodes.
"""

from decimal import Decimal

from django.urls import reverse

import pytest

from apps.inventory.barcode_utils import ean13, next_product_barcode
from apps.inventory.models import Category, Product, StockMovement


@pytest.mark.django_db
class TestCategories:
    def test_sub_category_under_main(self, authenticated_client, category):
        response = authenticated_client.post(
            reverse("inventory:category-list"),
            {"name": "Soft Drinks", "parent": str(category.pk)},
        )
        assert response.status_code == 201
        assert response.json()["data"]["level"] == "sub"
        assert response.json()["data"]["parent_name"] == "Beverages"

    def test_no_nesting_below_sub_categories(self, authenticated_client, organization, category):
        sub = Category.objects.create(
            organization=organization, name="Soft Drinks", parent=category
        )
        response = authenticated_client.post(
            reverse("inventory:category-list"), {"name": "Colas", "parent": str(sub.pk)}
        )
        assert response.status_code == 400
        assert "parent" in response.json()

    def test_level_filter(self, authenticated_client, organization, category):
        Category.objects.create(organization=organization, name="Soft Drinks", parent=category)
        response = authenticated_client.get(reverse("inventory:category-list"), {"level": "main"})
        assert [row["name"] for row in response.json()["results"]] == ["Beverages"]

    def test_category_of_another_organization_is_rejected(
        self, authenticated_client, other_organization
    ):
        foreign = Category.objects.create(organization=other_organization, name="Bread")
        response = authenticated_client.post(
            reverse("inventory:category-list"), {"name": "Buns", "parent": str(foreign.pk)}
        )
        assert response.status_code == 400

    def test_category_in_use_cannot_be_deleted(self, authenticated_client, product, category):
        response = authenticated_client.delete(
            reverse("inventory:category-detail", args=[category.pk])
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to delete category"


@pytest.mark.django_db
class TestProducts:
    def _payload(self, category, **overrides):
        payload = {
            "code": "TEA-001",
            "name": "Ceylon Tea 100g",
            "main_category": str(category.pk),
            "cost_price": "300.00",
            "retail_price": "450.00",
            "wholesale_price": "400.00",
            "quantity": 20,
        }
        payload.update(overrides)
        return payload

    def test_create_generates_barcode(self, authenticated_client, category):
        response = authenticated_client.post(
            reverse("inventory:product-list"), self._payload(category)
        )

        assert response.status_code == 201
        assert response.json()["data"]["barcode"] == "8990000000013"
        assert response.json()["data"]["margin"] == "33.33"

    def test_wholesale_price_cannot_exceed_retail(self, authenticated_client, category):
        response = authenticated_client.post(
            reverse("inventory:product-list"),
            self._payload(category, wholesale_price="500.00"),
        )
        assert response.status_code == 400
        assert "wholesale_price" in response.json()

    def test_sub_category_must_belong_to_main(self, authenticated_client, organization, category):
        other_main = Category.objects.create(organization=organization, name="Snacks")
        sub = Category.objects.create(organization=organization, name="Chips", parent=other_main)
        response = authenticated_client.post(
            reverse("inventory:product-list"),
            self._payload(category, sub_category=str(sub.pk)),
        )
        assert response.status_code == 400
        assert "sub_category" in response.json()

    def test_duplicate_code_and_barcode(self, authenticated_client, category, product):
        response = authenticated_client.post(
            reverse("inventory:product-list"),
            self._payload(category, code="bev-001", barcode=product.barcode),
        )
        assert response.status_code == 400
        assert "code" in response.json()
        assert "barcode" in response.json()

    def test_low_stock_filter(self, authenticated_client, product, second_product):
        response = authenticated_client.get(
            reverse("inventory:product-list"), {"low_stock": "true"}
        )
        results = response.json()["results"]
        assert [row["code"] for row in results] == ["BEV-002"]
        assert results[0]["is_low_stock"] is True

    def test_sort_by_price(self, authenticated_client, product, second_product):
        response = authenticated_client.get(
            reverse("inventory:product-list"), {"sort": "retail_price", "direction": "desc"}
        )
        assert [row["code"] for row in response.json()["results"]] == ["BEV-002", "BEV-001"]

    def test_csv_export(self, authenticated_client, product):
        response = authenticated_client.get(reverse("inventory:product-list"), {"export": "csv"})
        content = response.content.decode()
        assert content.splitlines()[0].startswith("code,name,barcode")
        assert "Ginger Beer 500ml" in content


@pytest.mark.django_db
class TestStock:
    def _adjust(self, client, product, adjustment_type, quantity):
        return client.post(
            reverse("inventory:product_adjust_stock", args=[product.pk]),
            {"adjustment_type": adjustment_type, "quantity": quantity, "reason": "Count"},
        )

    def test_add_deduct_and_set(self, authenticated_client, product):
        assert self._adjust(authenticated_client, product, "ADD", 10).status_code == 200
        assert self._adjust(authenticated_client, product, "DEDUCT", 5).status_code == 200
        response = self._adjust(authenticated_client, product, "SET", 42)

        assert response.json()["data"]["quantity"] == 42
        movements = list(product.movements.order_by("created_at"))
        assert [m.movement_type for m in movements] == ["ADD", "DEDUCT", "SET"]
        assert [m.quantity_change for m in movements] == [10, -5, -13]
        assert movements[-1].quantity_after == 42

    def test_cannot_deduct_more_than_in_stock(self, authenticated_client, product):
        response = self._adjust(authenticated_client, product, "DEDUCT", 51)
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["detail"]
        product.refresh_from_db()
        assert product.quantity == 50

    def test_zero_quantity_only_for_set(self, authenticated_client, product):
        assert self._adjust(authenticated_client, product, "ADD", 0).status_code == 400
        assert self._adjust(authenticated_client, product, "SET", 0).status_code == 200

    def test_movements_endpoint(self, authenticated_client, product):
        product.add_quantity(5, reason="Found in store", movement_type=StockMovement.ADD)
        response = authenticated_client.get(
            reverse("inventory:product_movements", args=[product.pk])
        )
        assert response.json()[0]["quantity_change"] == 5

    def test_deduct_quantity_model_guard(self, product):
        with pytest.raises(ValueError):
            product.deduct_quantity(100)

    def test_untracked_products_can_go_negative(self, product):
        product.track_quantity = False
        product.save()
        product.deduct_quantity(60)
        assert product.quantity == -10


@pytest.mark.django_db
class TestBarcodes:
    def test_ean13_check_digit(self):
        assert ean13("899000000001") == "8990000000013"
        assert ean13("400638133393") == "4006381333931"

    def test_next_barcode_skips_taken_codes(self, organization, category):
        Product.objects.create(
            organization=organization,
            code="X1",
            name="Taken",
            main_category=category,
            barcode="8990000000020",
        )
        # Serial 2 is already taken, so the next free one is 3
        assert next_product_barcode(organization) == "8990000000037"

    def test_barcode_image(self, authenticated_client, product):
        url = reverse("inventory:product_barcode", args=[product.pk])
        response = authenticated_client.get(url)
        assert response.status_code == 200
        assert response["Content-Type"] == "image/png"
        assert response.content[:8] == b"\x89PNG\r\n\x1a\n"

        assert authenticated_client.get(url, {"type": "ean13"}).status_code == 200
        assert authenticated_client.get(url, {"type": "upc"}).status_code == 400

    def test_labels(self, authenticated_client, product):
        response = authenticated_client.get(
            reverse("inventory:product_label", args=[product.pk]), {"style": "qr"}
        )
        assert response["Content-Type"] == "image/png"

        response = authenticated_client.post(
            reverse("inventory:product_labels"),
            {"items": [{"product": str(product.pk), "copies": 30}]},
            format="json",
        )
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_label_sheet_with_unknown_product(self, authenticated_client):
        response = authenticated_client.post(
            reverse("inventory:product_labels"),
            {"items": [{"product": "5b1d3c8e-8d4f-4b8e-9a55-2f0c6d3f2f11"}]},
            format="json",
        )
        assert response.status_code == 404

    def test_price_for(self, product):
        assert product.price_for() == Decimal("120.00")
        assert product.price_for(wholesale=True) == Decimal("100.00")
