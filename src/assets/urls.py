"""URL configuration for assets app."""

from django.urls import path

from . import views

app_name = "assets"

urlpatterns = [
    # Dashboard
    path("", views.dashboard, name="dashboard"),
    # Assets
    path("assets/", views.asset_list, name="asset_list"),
    path("assets/create/", views.asset_create, name="asset_create"),
    path(
        "assets/export/xlsx/",
        views.export_assets_xlsx,
        name="export_assets_xlsx",
    ),
    path(
        "assets/export/pdf/",
        views.export_assets_pdf,
        name="export_assets_pdf",
    ),
    path("assets/<str:pk>/", views.asset_detail, name="asset_detail"),
    path("assets/<str:pk>/edit/", views.asset_edit, name="asset_edit"),
    path("assets/<str:pk>/delete/", views.asset_delete, name="asset_delete"),
    path("assets/<str:pk>/scan/", views.asset_scan, name="asset_scan"),
    # Digital tags
    path(
        "assets/<str:pk>/digital/<str:kind>/",
        views.digital_tag_generate,
        name="digital_tag_generate",
    ),
    path(
        "assets/<str:pk>/digital/all/download/",
        views.digital_tag_download_all,
        name="digital_tag_download_all",
    ),
    path(
        "assets/<str:pk>/digital/<str:kind>/download/",
        views.digital_tag_download,
        name="digital_tag_download",
    ),
    path(
        "assets/<str:pk>/sub-assets/<str:category>/<int:index>/digital/"
        "<str:kind>/",
        views.sub_asset_digital_tag_generate,
        name="sub_asset_digital_tag_generate",
    ),
    # Scanning
    path("scan/", views.scan_lookup, name="scan"),
    # Audit trails
    path("audit-trails/", views.audit_trail_list, name="audit_trail_list"),
    path(
        "audit-trails/export/xlsx/",
        views.export_audit_trails_xlsx,
        name="export_audit_trails_xlsx",
    ),
    path(
        "audit-trails/export/pdf/",
        views.export_audit_trails_pdf,
        name="export_audit_trails_pdf",
    ),
    # Asset types
    path("asset-types/", views.asset_type_list, name="asset_type_list"),
    path(
        "asset-types/<str:pk>/edit/",
        views.asset_type_edit,
        name="asset_type_edit",
    ),
    path(
        "asset-types/<str:pk>/delete/",
        views.asset_type_delete,
        name="asset_type_delete",
    ),
    # Permissions
    path("permissions/", views.permissions_view, name="permissions"),
]
