"""
URL configuration for inventory app.
"""

from django.urls import path

from apps.core.entities import entity_urlpatterns

from . import views

app_name = "inventory"

urlpatterns = [
    *entity_urlpatterns("api/categories/", views.CategoryViewSet, "category"),
    *entity_urlpatterns("api/brands/", views.BrandViewSet, "brand"),
    *entity_urlpatterns("api/measurement-units/", views.MeasurementUnitViewSet, "measurement_unit"),
    *entity_urlpatterns("api/containers/", views.ContainerViewSet, "container"),
    # Products
    path(
        "api/products/labels/",
        views.ProductViewSet.as_view({"post": "labels"}),
        name="product_labels",
    ),
    *entity_urlpatterns("api/products/", views.ProductViewSet, "product"),
    path(
        "api/products/<uuid:pk>/barcode/",
        views.ProductViewSet.as_view({"get": "barcode"}),
        name="product_barcode",
    ),
    path(
        "api/products/<uuid:pk>/label/",
        views.ProductViewSet.as_view({"get": "label"}),
        name="product_label",
    ),
    path(
        "api/products/<uuid:pk>/adjust-stock/",
        views.ProductViewSet.as_view({"post": "adjust_stock"}),
        name="product_adjust_stock",
    ),
    path(
        "api/products/<uuid:pk>/movements/",
        views.ProductViewSet.as_view({"get": "movements"}),
        name="product_movements",
    ),
]
