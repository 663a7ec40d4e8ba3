"""
Core models for the POS admin platform.

Organizations own every other record. Users log in with their email address
and get their permissions from roles.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.permissions_catalogue import ALL_PERMISSION_CODES, SUPER_ADMIN_ROLE

# Record status shared by the admin-managed entities
STATUS_ACTIVE = "active"
STATUS_PENDING = "pending"
STATUS_INACTIVE = "inactive"

STATUS_CHOICES = [
    (STATUS_ACTIVE, "Active"),
    (STATUS_PENDING, "Pending"),
    (STATUS_INACTIVE, "Inactive"),
]


class Organization(models.Model):
    """
    A business using the POS.

    Every branch, product, customer and sale belongs to exactly one
    organization, and API querysets are scoped to the requesting user's one.
    """

    # Subscription plans
    PLAN_BASIC = "BASIC"
    PLAN_STANDARD = "STANDARD"
    PLAN_PREMIUM = "PREMIUM"
    PLAN_ENTERPRISE = "ENTERPRISE"

    PLAN_CHOICES = [
        (PLAN_BASIC, "Basic"),
        (PLAN_STANDARD, "Standard"),
        (PLAN_PREMIUM, "Premium"),
        (PLAN_ENTERPRISE, "Enterprise"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the organization",
    )

    name = models.CharField(max_length=255, help_text="Organization name")

    code = models.CharField(
        max_length=50, unique=True, help_text="Short unique code for the organization"
    )

    owner_email = models.EmailField(blank=True, help_text="Contact email of the owner")

    city = models.CharField(max_length=100, blank=True, help_text="City of the head office")

    subscription_plan = models.CharField(
        max_length=20,
        choices=PLAN_CHOICES,
        default=PLAN_BASIC,
        help_text="Subscription plan",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
        help_text="Current operational status",
    )

    is_multi_branch = models.BooleanField(
        default=False, help_text="Whether the organization may run more than one branch"
    )

    logo = models.ImageField(
        upload_to="organizations/logos/", null=True, blank=True, help_text="Organization logo"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "organizations"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="organization_status_idx"),
        ]
        verbose_name = "Organization"
        verbose_name_plural = "Organizations"

    def __str__(self):
        return f"{self.name} ({self.code})"

    def is_active(self):
        """Check if organization is in active status."""
        return self.status == STATUS_ACTIVE

    def can_add_branch(self):
        """Single-branch organizations are limited to one branch."""
        return self.is_multi_branch or not self.branches.exists()

    def get_settings(self):
        """Return the business settings, creating the defaults on first use."""
        settings_obj, _ = BusinessSettings.objects.get_or_create(
            organization=self,
            defaults={
                "tax_rate": Decimal(settings.POS_DEFAULT_TAX_RATE),
                "currency": settings.POS_DEFAULT_CURRENCY,
            },
        )
        return settings_obj


class Branch(models.Model):
    """
    A physical shop location of an organization.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the branch",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="branches",
        help_text="Organization that owns this branch",
    )

    name = models.CharField(max_length=255, help_text="Branch name")

    code = models.CharField(max_length=50, help_text="Branch code, unique per organization")

    phone = models.CharField(max_length=20, help_text="Branch phone number")

    email = models.EmailField(blank=True, help_text="Branch email")

    address = models.TextField(help_text="Branch address")

    city = models.CharField(max_length=100, help_text="Branch city")

    manager_name = models.CharField(max_length=255, blank=True)
    manager_email = models.EmailField(blank=True)
    manager_phone = models.CharField(max_length=20, blank=True)

    opening_time = models.TimeField(null=True, blank=True)
    closing_time = models.TimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True, help_text="Whether the branch is active")

    is_main_branch = models.BooleanField(
        default=False, help_text="Head branch of the organization, only one per organization"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "branches"
        ordering = ["name"]
        verbose_name = "Branch"
        verbose_name_plural = "Branches"
        unique_together = [["organization", "code"]]
        indexes = [
            models.Index(fields=["organization", "is_active"], name="branch_org_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.organization.name})"

    @property
    def status(self):
        return STATUS_ACTIVE if self.is_active else STATUS_INACTIVE

    def save(self, *args, **kwargs):
        """
        Keep exactly one main branch per organization.
        """
        if not self.is_main_branch:
            others = Branch.objects.filter(organization_id=self.organization_id).exclude(pk=self.pk)
            if not others.filter(is_main_branch=True).exists():
                self.is_main_branch = True
        super().save(*args, **kwargs)
        if self.is_main_branch:
            Branch.objects.filter(
                organization_id=self.organization_id, is_main_branch=True
            ).exclude(pk=self.pk).update(is_main_branch=False)


class Role(models.Model):
    """
    Named bundle of permission codes.

    Roles without an organization are global and visible to everyone.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="roles",
        help_text="Owning organization (null for global roles)",
    )

    name = models.CharField(max_length=100, help_text="Role name")

    description = models.TextField(blank=True)

    permissions = models.JSONField(
        default=list, blank=True, help_text="List of permission codes granted by this role"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "roles"
        ordering = ["name"]
        unique_together = [["organization", "name"]]
        verbose_name = "Role"
        verbose_name_plural = "Roles"

    def __str__(self):
        return self.name

    @property
    def is_super_admin(self):
        return self.name == SUPER_ADMIN_ROLE


class EmailUserManager(UserManager):
    """Look users up by email regardless of case."""

    def get_by_natural_key(self, username):
        return self.get(**{f"{self.model.USERNAME_FIELD}__iexact": username})


class User(AbstractUser):
    """
    Extended user model that logs in with email and belongs to an organization.
    """

    email = models.EmailField(unique=True, help_text="Login email address")

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="users",
        help_text="Organization that this user belongs to (null for platform admins)",
    )

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        help_text="Branch that this user is assigned to",
    )

    roles = models.ManyToManyField(Role, blank=True, related_name="users")

    phone = models.CharField(max_length=20, blank=True, help_text="User's phone number")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    objects = EmailUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        db_table = "users"
        ordering = ["email"]
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["organization", "branch"], name="user_org_branch_idx"),
        ]

    def __str__(self):
        return self.email

    @property
    def name(self):
        return self.get_full_name() or self.username

    def is_platform_admin(self):
        """Superusers are platform administrators and see every organization."""
        return self.is_superuser

    def has_role(self, name):
        return self.roles.filter(name=name).exists()

    def is_super_admin(self):
        return self.is_superuser or self.has_role(SUPER_ADMIN_ROLE)

    def get_permission_codes(self):
        """Flattened, sorted permission codes from every role of the user."""
        if self.is_super_admin():
            return sorted(ALL_PERMISSION_CODES)
        codes = set()
        for permissions in self.roles.values_list("permissions", flat=True):
            codes.update(permissions or [])
        return sorted(codes)

    def has_permission(self, code):
        if self.is_super_admin():
            return True
        return code in self.get_permission_codes()

    def has_any_permission(self, codes):
        if self.is_super_admin():
            return True
        granted = set(self.get_permission_codes())
        return any(code in granted for code in codes)

    def save(self, *args, **kwargs):
        """
        Keep is_active in line with status and branch in line with organization.
        """
        self.is_active = self.status != STATUS_INACTIVE
        if self.branch_id and self.organization_id:
            branch_organization_id = (
                Branch.objects.filter(id=self.branch_id)
                .values_list("organization_id", flat=True)
                .first()
            )
            if branch_organization_id != self.organization_id:
                raise ValueError("Branch must belong to the same organization as the user")
        super().save(*args, **kwargs)


class Employee(models.Model):
    """
    Staff member of an organization, optionally linked to a login account.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="employees"
    )

    branch = models.ForeignKey(
        Branch, on_delete=models.SET_NULL, null=True, blank=True, related_name="employees"
    )

    employee_number = models.CharField(
        max_length=20, editable=False, help_text="Sequential number, e.g. EMP-00001"
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    designation = models.CharField(max_length=100, blank=True)
    hire_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    user = models.OneToOneField(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="employee",
        help_text="Login account of the employee, if any",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "employees"
        ordering = ["employee_number"]
        unique_together = [["organization", "employee_number"]]
        verbose_name = "Employee"
        verbose_name_plural = "Employees"

    def __str__(self):
        return f"{self.employee_number} {self.full_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def save(self, *args, **kwargs):
        if not self.employee_number:
            from apps.core.utils import next_sequence_number

            self.employee_number = next_sequence_number(
                Employee, self.organization, "employee_number", "EMP-"
            )
        super().save(*args, **kwargs)


class BusinessSettings(models.Model):
    """
    Per-organization POS settings used by checkout and receipts.
    """

    organization = models.OneToOneField(
        Organization, on_delete=models.CASCADE, related_name="business_settings"
    )

    currency = models.CharField(max_length=10, default="LKR")

    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("8.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text="Sales tax percentage applied at checkout",
    )

    receipt_header = models.TextField(blank=True)
    receipt_footer = models.TextField(blank=True, default="Thank you for shopping with us!")
    show_product_images = models.BooleanField(default=True)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "business_settings"
        verbose_name = "Business Settings"
        verbose_name_plural = "Business Settings"

    def __str__(self):
        return f"Settings for {self.organization.name}"
