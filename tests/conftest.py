"""
Pytest configuration and fixtures for the POS admin platform.
"""

from decimal import Decimal

import pytest

from apps.core.models import Branch, Organization, Role
from apps.core.permissions_catalogue import SUPER_ADMIN_ROLE


@pytest.fixture
def api_client():
    """
    Fixture for Django REST framework API client.
    """
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def organization(db):
    return Organization.objects.create(name="Green Grocers", code="GG", city="Colombo")


@pytest.fixture
def other_organization(db):
    return Organization.objects.create(name="Blue Bakers", code="BB", city="Kandy")


@pytest.fixture
def branch(organization):
    return Branch.objects.create(
        organization=organization,
        name="Main Street",
        code="MS",
        phone="0112345678",
        address="12 Main Street",
        city="Colombo",
        is_main_branch=True,
    )


@pytest.fixture
def admin_role(organization):
    return Role.objects.create(organization=organization, name=SUPER_ADMIN_ROLE)


@pytest.fixture
def admin_user(django_user_model, organization, branch, admin_role):
    """Organization user holding the Super Admin role."""
    user = django_user_model.objects.create_user(
        username="admin",
        email="admin@greengrocers.lk",
        password="S3cure-pass!",
        first_name="Asha",
        last_name="Perera",
        organization=organization,
        branch=branch,
    )
    user.roles.add(admin_role)
    return user


@pytest.fixture
def cashier_user(django_user_model, organization, branch):
    """Organization user that may only sell."""
    role = Role.objects.create(
        organization=organization, name="Cashier", permissions=["process_sales"]
    )
    user = django_user_model.objects.create_user(
        username="cashier",
        email="cashier@greengrocers.lk",
        password="S3cure-pass!",
        organization=organization,
        branch=branch,
    )
    user.roles.add(role)
    return user


@pytest.fixture
def platform_admin(django_user_model):
    return django_user_model.objects.create_superuser(
        username="platform", email="platform@posadmin.lk", password="S3cure-pass!"
    )


@pytest.fixture
def authenticated_client(api_client, admin_user):
    """
    Fixture for authenticated API client.
    """
    api_client.force_authenticate(user=admin_user)
    return api_client


@pytest.fixture
def cashier_client(api_client, cashier_user):
    api_client.force_authenticate(user=cashier_user)
    return api_client


@pytest.fixture
def category(organization):
    from apps.inventory.models import Category

    return Category.objects.create(organization=organization, name="Beverages", code="BEV")


@pytest.fixture
def brand(organization):
    from apps.inventory.models import Brand

    return Brand.objects.create(organization=organization, name="Elephant House")


@pytest.fixture
def supplier(organization):
    from apps.procurement.models import Supplier

    return Supplier.objects.create(
        organization=organization,
        name="Lanka Distributors",
        code="SUP-001",
        phone="0771234567",
        contact_person_name="Nimal Silva",
    )


@pytest.fixture
def product(organization, category, brand, supplier):
    from apps.inventory.models import Product

    return Product.objects.create(
        organization=organization,
        code="BEV-001",
        name="Ginger Beer 500ml",
        barcode="8901234567890",
        main_category=category,
        brand=brand,
        supplier=supplier,
        size="500ml",
        cost_price=Decimal("80.00"),
        retail_price=Decimal("120.00"),
        wholesale_price=Decimal("100.00"),
        quantity=50,
        reorder_level=10,
    )


@pytest.fixture
def second_product(organization, category):
    from apps.inventory.models import Product

    return Product.objects.create(
        organization=organization,
        code="BEV-002",
        name="Orange Juice 1l",
        main_category=category,
        cost_price=Decimal("250.00"),
        retail_price=Decimal("400.00"),
        wholesale_price=Decimal("350.00"),
        quantity=5,
        reorder_level=5,
    )


@pytest.fixture
def customer(organization):
    from apps.crm.models import Customer

    return Customer.objects.create(
        organization=organization, name="Kamal Fernando", phone="0711111111"
    )
