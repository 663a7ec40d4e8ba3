"""
Serializers for authentication, users and organization structure.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.utils.encoding import force_str
from django.utils.http import urlsafe_base64_decode

from rest_framework import exceptions, serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import BusinessSettings, Branch, Employee, Organization, Role
from .permissions_catalogue import ALL_PERMISSION_CODES

User = get_user_model()


class OrganizationScopedSerializer(serializers.ModelSerializer):
    """
    Model serializer that refuses references to another organization's records.
    """

    def get_organization(self):
        if self.instance is not None and getattr(self.instance, "organization_id", None):
            return self.instance.organization
        organization = self.context.get("organization")
        if organization is not None:
            return organization
        organization_id = getattr(self, "initial_data", {}).get("organization")
        if organization_id:
            return Organization.objects.filter(pk=organization_id).first()
        return None

    def validate(self, attrs):
        attrs = super().validate(attrs)
        organization = self.get_organization()
        if organization is None:
            return attrs

        errors = {}
        for name, value in attrs.items():
            related = value if isinstance(value, (list, tuple)) else [value]
            for obj in related:
                if not isinstance(obj, models.Model) or obj is organization:
                    continue
                owner_id = getattr(obj, "organization_id", None)
                if owner_id is not None and owner_id != organization.pk:
                    errors[name] = ["Select a record from your own organization."]
        if errors:
            raise serializers.ValidationError(errors)
        return attrs

    def check_unique_in_organization(self, field_name, value, message=None):
        """Reject ``value`` when another record of the organization already uses it."""
        organization = self.get_organization()
        if organization is None or value in (None, ""):
            return value
        model = self.Meta.model
        queryset = model.objects.filter(
            organization=organization, **{f"{field_name}__iexact": value}
        )
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(
                message or f"A record with this {field_name.replace('_', ' ')} already exists."
            )
        return value


# Authentication


def user_payload(user):
    """User details returned with tokens and by the ``me`` endpoint."""
    return {
        "id": user.pk,
        "email": user.email,
        "username": user.username,
        "name": user.name,
        "phone": user.phone,
        "status": user.status,
        "organization_id": str(user.organization_id) if user.organization_id else None,
        "organization_name": user.organization.name if user.organization_id else None,
        "branch_id": str(user.branch_id) if user.branch_id else None,
        "is_platform_admin": user.is_platform_admin(),
        "roles": list(user.roles.values_list("name", flat=True)),
        "permissions": user.get_permission_codes(),
    }


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    JWT login with email and password.

    Tokens carry the claims the admin screens need to render menus without an
    extra round trip.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        # Add custom claims
        token["email"] = user.email
        token["name"] = user.name
        token["organization_id"] = str(user.organization_id) if user.organization_id else None
        token["roles"] = list(user.roles.values_list("name", flat=True))
        token["permissions"] = user.get_permission_codes()

        return token

    def validate(self, attrs):
        data = super().validate(attrs)

        organization = self.user.organization
        if organization is not None and not organization.is_active():
            raise exceptions.AuthenticationFailed(
                "Your organization account is not active.", code="organization_inactive"
            )

        data["user"] = user_payload(self.user)
        return data


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class VerifyTokenSerializer(serializers.Serializer):
    """
    Password reset link parameters: base64 user id and a one-time token.
    """

    uid = serializers.CharField()
    token = serializers.CharField()

    def get_user(self, uid):
        try:
            user_id = force_str(urlsafe_base64_decode(uid))
            return User.objects.get(pk=user_id)
        except (TypeError, ValueError, OverflowError, User.DoesNotExist):
            return None

    def validate(self, attrs):
        user = self.get_user(attrs["uid"])
        if user is None or not default_token_generator.check_token(user, attrs["token"]):
            raise serializers.ValidationError({"token": "Invalid or expired reset link."})
        attrs["user"] = user
        return attrs


class ResetPasswordSerializer(VerifyTokenSerializer):
    password = serializers.CharField(write_only=True)
    confirm_password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if attrs["password"] != attrs["confirm_password"]:
            raise serializers.ValidationError({"confirm_password": "Passwords do not match."})
        try:
            validate_password(attrs["password"], attrs["user"])
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": list(exc.messages)})
        return attrs

    def save(self):
        user = self.validated_data["user"]
        user.set_password(self.validated_data["password"])
        user.save(update_fields=["password"])
        return user


# Organization structure


class OrganizationSerializer(serializers.ModelSerializer):
    branch_count = serializers.IntegerField(source="branches.count", read_only=True)

    class Meta:
        model = Organization
        fields = [
            "id",
            "name",
            "code",
            "owner_email",
            "city",
            "subscription_plan",
            "status",
            "is_multi_branch",
            "logo",
            "branch_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "branch_count", "created_at", "updated_at"]
        extra_kwargs = {"name": {"min_length": 2}, "code": {"min_length": 2}}


class BranchSerializer(OrganizationScopedSerializer):
    organization_name = serializers.CharField(source="organization.name", read_only=True)
    status = serializers.CharField(read_only=True)

    class Meta:
        model = Branch
        fields = [
            "id",
            "organization",
            "organization_name",
            "name",
            "code",
            "phone",
            "email",
            "address",
            "city",
            "manager_name",
            "manager_email",
            "manager_phone",
            "opening_time",
            "closing_time",
            "is_active",
            "is_main_branch",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "organization_name", "created_at", "updated_at"]
        extra_kwargs = {
            "name": {"min_length": 3},
            "code": {"min_length": 1},
            "phone": {"min_length": 10},
            "address": {"min_length": 5},
            "city": {"min_length": 2},
        }

    def validate_code(self, value):
        return self.check_unique_in_organization(
            "code", value, "A branch with this code already exists."
        )

    def validate(self, attrs):
        attrs = super().validate(attrs)
        opening, closing = attrs.get("opening_time"), attrs.get("closing_time")
        if opening and closing and closing <= opening:
            raise serializers.ValidationError(
                {"closing_time": "Closing time must be after opening time."}
            )
        if self.instance is not None and self.instance.is_main_branch:
            if attrs.get("is_main_branch") is False:
                raise serializers.ValidationError(
                    {
                        "is_main_branch": [
                            "An organization needs a main branch. "
                            "Mark another branch as main instead."
                        ]
                    }
                )
        return attrs

    def create(self, validated_data):
        organization = validated_data["organization"]
        if not organization.can_add_branch():
            raise serializers.ValidationError(
                {"organization": ["This organization is not set up for multiple branches."]}
            )
        if not organization.branches.exists():
            validated_data["is_main_branch"] = True
        return super().create(validated_data)


class RoleSerializer(OrganizationScopedSerializer):
    user_count = serializers.IntegerField(source="users.count", read_only=True)
    is_global = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = [
            "id",
            "organization",
            "name",
            "description",
            "permissions",
            "user_count",
            "is_global",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "user_count", "created_at", "updated_at"]

    def get_is_global(self, obj):
        return obj.organization_id is None

    def validate_name(self, value):
        return self.check_unique_in_organization(
            "name", value, "A role with this name already exists."
        )

    def validate_permissions(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Permissions must be a list of codes.")
        unknown = sorted(set(value) - ALL_PERMISSION_CODES)
        if unknown:
            raise serializers.ValidationError(f"Unknown permission codes: {', '.join(unknown)}")
        return sorted(set(value))


class UserSerializer(OrganizationScopedSerializer):
    """
    Organization user management.
    """

    password = serializers.CharField(
        write_only=True, required=False, validators=[validate_password]
    )
    role_names = serializers.SerializerMethodField()
    name = serializers.CharField(read_only=True)
    roles = serializers.PrimaryKeyRelatedField(
        queryset=Role.objects.all(), many=True, required=False
    )

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "name",
            "phone",
            "status",
            "organization",
            "branch",
            "roles",
            "role_names",
            "password",
            "last_login",
            "date_joined",
        ]
        read_only_fields = ["id", "organization", "name", "last_login", "date_joined"]

    def get_role_names(self, obj):
        return [role.name for role in obj.roles.all()]

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": ["This field is required."]})
        return attrs

    def create(self, validated_data):
        roles = validated_data.pop("roles", [])
        password = validated_data.pop("password")
        user = User.objects.create_user(password=password, **validated_data)
        user.roles.set(roles)
        return user

    def update(self, instance, validated_data):
        roles = validated_data.pop("roles", None)
        password = validated_data.pop("password", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        if roles is not None:
            instance.roles.set(roles)
        return instance


class EmployeeSerializer(OrganizationScopedSerializer):
    full_name = serializers.CharField(read_only=True)
    branch_name = serializers.CharField(source="branch.name", read_only=True, default=None)

    class Meta:
        model = Employee
        fields = [
            "id",
            "organization",
            "employee_number",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "phone",
            "designation",
            "hire_date",
            "branch",
            "branch_name",
            "status",
            "user",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "organization",
            "employee_number",
            "full_name",
            "branch_name",
            "created_at",
            "updated_at",
        ]
        extra_kwargs = {"first_name": {"min_length": 2}}


class BusinessSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = BusinessSettings
        fields = [
            "currency",
            "tax_rate",
            "receipt_header",
            "receipt_footer",
            "show_product_images",
            "address",
            "phone",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]
