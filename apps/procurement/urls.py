"""
URL configuration for procurement app.
"""

from django.urls import path

from apps.core.entities import entity_urlpatterns

from . import views

app_name = "procurement"

urlpatterns = [
    *entity_urlpatterns("api/suppliers/", views.SupplierViewSet, "supplier"),
    # Purchase orders
    *entity_urlpatterns("api/purchase-orders/", views.PurchaseOrderViewSet, "purchase_order"),
    path(
        "api/purchase-orders/<uuid:pk>/approve/",
        views.PurchaseOrderViewSet.as_view({"post": "approve"}),
        name="purchase_order_approve",
    ),
    path(
        "api/purchase-orders/<uuid:pk>/send/",
        views.PurchaseOrderViewSet.as_view({"post": "send"}),
        name="purchase_order_send",
    ),
    path(
        "api/purchase-orders/<uuid:pk>/cancel/",
        views.PurchaseOrderViewSet.as_view({"post": "cancel"}),
        name="purchase_order_cancel",
    ),
    path(
        "api/purchase-orders/<uuid:pk>/print/",
        views.PurchaseOrderViewSet.as_view({"get": "print_order"}),
        name="purchase_order_print",
    ),
    path(
        "api/purchase-orders/<uuid:pk>/pdf/",
        views.PurchaseOrderViewSet.as_view({"get": "pdf"}),
        name="purchase_order_pdf",
    ),
    # Goods received notes
    path(
        "api/grns/",
        views.GoodsReceivedNoteViewSet.as_view({"get": "list", "post": "create"}),
        name="grn-list",
    ),
    path(
        "api/grns/<uuid:pk>/",
        views.GoodsReceivedNoteViewSet.as_view({"get": "retrieve"}),
        name="grn-detail",
    ),
]
