"""
URL configuration for the POS and sales history.
"""

from django.urls import path

from . import views

app_name = "sales"

urlpatterns = [
    # POS
    path("api/pos/cart/", views.CartView.as_view(), name="pos_cart"),
    path("api/pos/cart/actions/", views.CartActionView.as_view(), name="pos_cart_actions"),
    path("api/pos/cart/totals/", views.CartTotalsView.as_view(), name="pos_cart_totals"),
    path("api/pos/cart/hold/", views.HoldCartView.as_view(), name="pos_cart_hold"),
    path("api/pos/cart/held/", views.HeldCartListView.as_view(), name="pos_cart_held"),
    path(
        "api/pos/cart/resume/<uuid:pk>/", views.ResumeCartView.as_view(), name="pos_cart_resume"
    ),
    path("api/pos/products/", views.ProductSearchView.as_view(), name="pos_products"),
    path("api/pos/customers/", views.CustomerSearchView.as_view(), name="pos_customers"),
    path("api/pos/sellers/", views.SellerListView.as_view(), name="pos_sellers"),
    path("api/pos/checkout/", views.CheckoutView.as_view(), name="pos_checkout"),
    # Sales history
    path("api/sales/", views.SaleViewSet.as_view({"get": "list"}), name="sale-list"),
    path(
        "api/sales/<uuid:pk>/", views.SaleViewSet.as_view({"get": "retrieve"}), name="sale-detail"
    ),
    path(
        "api/sales/<uuid:pk>/refund/",
        views.SaleViewSet.as_view({"post": "refund"}),
        name="sale_refund",
    ),
    path(
        "api/sales/<uuid:pk>/receipt/",
        views.SaleViewSet.as_view({"get": "receipt"}),
        name="sale_receipt",
    ),
    path(
        "api/sales/<uuid:pk>/receipt.pdf",
        views.SaleViewSet.as_view({"get": "receipt_pdf"}),
        name="sale_receipt_pdf",
    ),
]
