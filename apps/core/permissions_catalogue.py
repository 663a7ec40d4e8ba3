"""
Permission codes grouped by admin screen.

Roles store lists of these codes; ``HasModulePermission`` checks them.
"""

SUPER_ADMIN_ROLE = "Super Admin"

PERMISSIONS = {
    "organizations": ["view_organizations", "manage_organizations"],
    "branches": ["view_branches", "manage_branches"],
    "employees": ["view_employees", "manage_employees"],
    "customers": ["view_customers", "manage_customers"],
    "suppliers": ["view_suppliers", "manage_suppliers"],
    "products": ["view_products", "manage_products"],
    "categories": ["view_categories", "manage_categories"],
    "purchases": ["view_purchases", "manage_purchases"],
    "reports": ["view_reports", "manage_reports"],
    "sales": ["process_sales"],
    "users": ["manage_users"],
    "settings": ["manage_settings"],
}

ALL_PERMISSION_CODES = frozenset(code for codes in PERMISSIONS.values() for code in codes)


def module_permissions(module):
    """Return the (view, manage) codes of a screen."""
    return tuple(PERMISSIONS[module])
