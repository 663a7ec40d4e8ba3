"""
Tests for JWT login, logout, the current user endpoint and password reset.
"""

from django.contrib.auth.tokens import default_token_generator
from django.urls import reverse
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode

import pytest

from apps.core.models import STATUS_INACTIVE


@pytest.mark.django_db
class TestLogin:
    def test_login_returns_tokens_and_user(self, api_client, admin_user):
        response = api_client.post(
            reverse("core:api_login"),
            {"email": "admin@greengrocers.lk", "password": "S3cure-pass!"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert "access" in data
        assert "refresh" in data
        assert data["user"]["email"] == "admin@greengrocers.lk"
        assert data["user"]["organization_name"] == "Green Grocers"
        assert "manage_products" in data["user"]["permissions"]

    def test_login_email_is_case_insensitive(self, api_client, admin_user):
        response = api_client.post(
            reverse("core:api_login"),
            {"email": "ADMIN@GreenGrocers.lk", "password": "S3cure-pass!"},
            format="json",
        )
        assert response.status_code == 200

    def test_wrong_password_is_rejected(self, api_client, admin_user):
        response = api_client.post(
            reverse("core:api_login"),
            {"email": "admin@greengrocers.lk", "password": "wrong"},
            format="json",
        )
        assert response.status_code == 401

    def test_inactive_organization_cannot_log_in(self, api_client, admin_user, organization):
        organization.status = STATUS_INACTIVE
        organization.save()
        response = api_client.post(
            reverse("core:api_login"),
            {"email": "admin@greengrocers.lk", "password": "S3cure-pass!"},
            format="json",
        )
        assert response.status_code == 401

    def test_access_token_authenticates_requests(self, api_client, admin_user):
        tokens = api_client.post(
            reverse("core:api_login"),
            {"email": "admin@greengrocers.lk", "password": "S3cure-pass!"},
            format="json",
        ).json()

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = api_client.get(reverse("core:current_user"))
        assert response.status_code == 200
        assert response.json()["name"] == "Asha Perera"

    def test_logout_blacklists_refresh_token(self, api_client, admin_user):
        tokens = api_client.post(
            reverse("core:api_login"),
            {"email": "admin@greengrocers.lk", "password": "S3cure-pass!"},
            format="json",
        ).json()
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = api_client.post(
            reverse("core:api_logout"), {"refresh": tokens["refresh"]}, format="json"
        )
        assert response.status_code == 200

        response = api_client.post(
            reverse("core:api_token_refresh"), {"refresh": tokens["refresh"]}, format="json"
        )
        assert response.status_code == 401


@pytest.mark.django_db
class TestCurrentUser:
    def test_cashier_permissions(self, cashier_client):
        response = cashier_client.get(reverse("core:current_user"))
        assert response.json()["permissions"] == ["process_sales"]
        assert response.json()["roles"] == ["Cashier"]

    def test_platform_admin_has_no_organization(self, api_client, platform_admin):
        api_client.force_authenticate(user=platform_admin)
        data = api_client.get(reverse("core:current_user")).json()
        assert data["is_platform_admin"] is True
        assert data["organization_id"] is None


@pytest.mark.django_db
class TestPasswordReset:
    def test_forgot_password_sends_reset_email(self, api_client, admin_user, mailoutbox):
        response = api_client.post(
            reverse("core:forgot_password"), {"email": "admin@greengrocers.lk"}, format="json"
        )

        assert response.status_code == 200
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == ["admin@greengrocers.lk"]
        assert "reset-password?uid=" in mailoutbox[0].body

    def test_unknown_email_gets_the_same_answer(self, api_client, admin_user, mailoutbox):
        known = api_client.post(
            reverse("core:forgot_password"), {"email": "admin@greengrocers.lk"}, format="json"
        )
        unknown = api_client.post(
            reverse("core:forgot_password"), {"email": "nobody@example.com"}, format="json"
        )
        assert unknown.status_code == 200
        assert unknown.json() == known.json()
        assert len(mailoutbox) == 1

    def _link(self, user):
        return urlsafe_base64_encode(force_bytes(user.pk)), default_token_generator.make_token(user)

    def test_verify_token(self, api_client, admin_user):
        uid, token = self._link(admin_user)
        response = api_client.post(
            reverse("core:verify_token"), {"uid": uid, "token": token}, format="json"
        )
        assert response.json() == {"valid": True}

        response = api_client.post(
            reverse("core:verify_token"), {"uid": uid, "token": "bad-token"}, format="json"
        )
        assert response.json() == {"valid": False}

    def test_reset_password(self, api_client, admin_user):
        uid, token = self._link(admin_user)
        response = api_client.post(
            reverse("core:reset_password"),
            {
                "uid": uid,
                "token": token,
                "password": "Fresh-Passw0rd",
                "confirm_password": "Fresh-Passw0rd",
            },
            format="json",
        )

        assert response.status_code == 200
        admin_user.refresh_from_db()
        assert admin_user.check_password("Fresh-Passw0rd")

        # The link only works once
        response = api_client.post(
            reverse("core:verify_token"), {"uid": uid, "token": token}, format="json"
        )
        assert response.json() == {"valid": False}

    def test_reset_password_mismatch(self, api_client, admin_user):
        uid, token = self._link(admin_user)
        response = api_client.post(
            reverse("core:reset_password"),
            {"uid": uid, "token": token, "password": "Fresh-Passw0rd", "confirm_password": "x"},
            format="json",
        )
        assert response.status_code == 400
        assert "confirm_password" in response.json()
