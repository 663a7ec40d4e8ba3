from django.urls import path

from rest_framework_simplejwt.views import TokenRefreshView

from . import resource_views, views
from .entities import entity_urlpatterns

app_name = "core"

urlpatterns = [
    path("health/", views.health_check, name="health_check"),
    # JWT authentication
    path("api/auth/login/", views.CustomTokenObtainPairView.as_view(), name="api_login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="api_token_refresh"),
    path("api/auth/logout/", views.LogoutAPIView.as_view(), name="api_logout"),
    path("api/auth/forgot-password/", views.ForgotPasswordView.as_view(), name="forgot_password"),
    path("api/auth/verify-token/", views.VerifyResetTokenView.as_view(), name="verify_token"),
    path("api/auth/reset-password/", views.ResetPasswordView.as_view(), name="reset_password"),
    path("api/auth/me/", views.CurrentUserView.as_view(), name="current_user"),
    # Session login for printable pages
    path("accounts/login/", views.SessionLoginView.as_view(), name="login"),
    path("accounts/logout/", views.SessionLogoutView.as_view(), name="logout"),
    # Organization structure
    *entity_urlpatterns("api/organizations/", resource_views.OrganizationViewSet, "organization"),
    *entity_urlpatterns("api/branches/", resource_views.BranchViewSet, "branch"),
    *entity_urlpatterns("api/roles/", resource_views.RoleViewSet, "role"),
    *entity_urlpatterns("api/employees/", resource_views.EmployeeViewSet, "employee"),
    *entity_urlpatterns("api/users/", resource_views.UserViewSet, "user", pk_type="int"),
    path("api/permissions/", resource_views.PermissionCatalogueView.as_view(), name="permissions"),
    path(
        "api/settings/business/",
        resource_views.BusinessSettingsView.as_view(),
        name="business_settings",
    ),
]
