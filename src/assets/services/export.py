"""Excel export service for assets and audit trails."""

import json
from io import BytesIO

import openpyxl
from openpyxl.styles import Font, PatternFill

from django.conf import settings
from django.utils import timezone

from ..records import (
    NOT_AVAILABLE,
    STATUS_CHOICES,
    assigned_email,
    assigned_name,
    audit_detail,
    digital_asset,
    format_date,
    format_datetime,
    has_coordinates,
    project_name,
)
from .search import count_by

HEADER_FILL = PatternFill(start_color="2563EB", end_color="2563EB", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")
MAX_COLUMN_WIDTH = 50

ASSET_HEADERS = [
    "Tag ID",
    "Asset Type",
    "Subcategory",
    "Brand",
    "Model",
    "Serial Number",
    "Capacity",
    "Year of Installation",
    "Project Name",
    "Status",
    "Priority",
    "Mobility",
    "Assigned To Name",
    "Assigned To Email",
    "Complete Location",
    "Building",
    "Floor",
    "Room",
    "Coordinates",
    "QR Code URL",
    "QR Code Generated",
    "Barcode URL",
    "Barcode Generated",
    "NFC Data URL",
    "NFC Generated",
    "Certifications",
    "Expiry Dates",
    "Regulatory Requirements",
    "Tags",
    "Notes",
    "Created By Name",
    "Created By Email",
    "Created Date",
    "Last Updated",
]

AUDIT_HEADERS = [
    "User",
    "Email",
    "Action",
    "Resource Type",
    "Resource ID",
    "Tag ID",
    "Asset Type",
    "Brand",
    "Capacity",
    "Project Name",
    "Year of Installation",
    "Timestamp",
    "Details",
]


def _joined(values):
    return ", ".join(str(v) for v in values or [])


def _style_header(ws):
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL


def _autosize(*sheets):
    for ws in sheets:
        for column_cells in ws.columns:
            max_length = max(len(str(cell.value or "")) for cell in column_cells)
            ws.column_dimensions[column_cells[0].column_letter].width = min(
                max_length + 2, MAX_COLUMN_WIDTH
            )


def _save(wb) -> BytesIO:
    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def _summary_sheet(wb, title, total_label, total, sections):
    ws = wb.active
    ws.title = "Summary"
    ws.append([f"{settings.SITE_NAME} {title}"])
    ws["A1"].font = Font(bold=True, size=14)
    ws.append(["Generated", timezone.now().strftime("%Y-%m-%d %H:%M")])
    ws.append([])
    ws.append([total_label, total])
    for heading, counts in sections:
        ws.append([])
        ws.append([heading])
        ws.cell(row=ws.max_row, column=1).font = Font(bold=True)
        for label, count in counts.items():
            ws.append([label, count])
    return ws


def asset_row(asset, address):
    location = asset.get("location") or {}
    compliance = asset.get("compliance") or {}
    created_by = asset.get("createdBy") or {}
    qr = digital_asset(asset, "qrCode") or {}
    barcode = digital_asset(asset, "barcode") or {}
    nfc = digital_asset(asset, "nfcData") or {}
    coordinates = ""
    if has_coordinates(location):
        coordinates = f"{location.get('latitude', '')}, {location.get('longitude', '')}"
    return [
        asset.get("tagId") or "",
        asset.get("assetType") or "",
        asset.get("subcategory") or "",
        asset.get("brand") or "",
        asset.get("model") or "",
        asset.get("serialNumber") or "",
        asset.get("capacity") or "",
        asset.get("yearOfInstallation") or "",
        project_name(asset),
        asset.get("status") or "",
        asset.get("priority") or "",
        asset.get("mobilityCategory") or "",
        assigned_name(asset) or "Unassigned",
        assigned_email(asset),
        address,
        location.get("building") or "",
        location.get("floor") or "",
        location.get("room") or "",
        coordinates,
        qr.get("url") or "",
        format_date(qr.get("generatedAt")),
        barcode.get("url") or "",
        format_date(barcode.get("generatedAt")),
        nfc.get("url") or "",
        format_date(nfc.get("generatedAt")),
        _joined(compliance.get("certifications")),
        _joined(compliance.get("expiryDates")),
        _joined(compliance.get("regulatoryRequirements")),
        _joined(asset.get("tags")),
        asset.get("notes") or "",
        created_by.get("name") or "",
        created_by.get("email") or "",
        format_date(asset.get("createdAt")),
        format_date(asset.get("updatedAt")),
    ]


def export_assets_xlsx(assets, geocoder=None) -> BytesIO:
    """Export assets to an Excel workbook.

    ``geocoder(location)`` resolves each asset's location into an
    address; it must not raise. Without one, the address column holds
    the placeholder.
    """
    from .geocode import ADDRESS_NOT_AVAILABLE

    assets = list(assets)
    wb = openpyxl.Workbook()

    status_counts = {label: 0 for _, label in STATUS_CHOICES}
    status_labels = dict(STATUS_CHOICES)
    for asset in assets:
        status = str(asset.get("status") or "").lower()
        label = status_labels.get(status, status.title() or "Unknown")
        status_counts[label] = status_counts.get(label, 0) + 1

    ws_summary = _summary_sheet(
        wb,
        "Asset Export",
        "Total Assets",
        len(assets),
        [
            ("By Status", status_counts),
            ("By Asset Type", count_by(assets, "assetType")),
            ("By Priority", count_by(assets, "priority")),
        ],
    )

    ws_assets = wb.create_sheet("Assets")
    ws_assets.append(ASSET_HEADERS)
    _style_header(ws_assets)
    for asset in assets:
        address = ADDRESS_NOT_AVAILABLE
        if geocoder is not None and asset.get("location"):
            address = geocoder(asset["location"]) or ADDRESS_NOT_AVAILABLE
        ws_assets.append(asset_row(asset, address))

    _autosize(ws_summary, ws_assets)
    return _save(wb)


def audit_log_row(log):
    user = log.get("user") or {}
    return [
        user.get("name") or "",
        user.get("email") or "",
        log.get("action") or "",
        log.get("resourceType") or "",
        log.get("resourceId") or "",
        audit_detail(log, "tagId"),
        audit_detail(log, "assetType"),
        audit_detail(log, "brand"),
        audit_detail(log, "capacity"),
        audit_detail(log, "projectName"),
        audit_detail(log, "yearOfInstallation"),
        format_datetime(log.get("timestamp")) or NOT_AVAILABLE,
        json.dumps(log.get("details") or {}, sort_keys=True, default=str),
    ]


def export_audit_logs_xlsx(logs) -> BytesIO:
    """Export audit trail entries to an Excel workbook."""
    logs = list(logs)
    wb = openpyxl.Workbook()

    ws_summary = _summary_sheet(
        wb,
        "Audit Trails Export",
        "Total Entries",
        len(logs),
        [
            ("By Action", count_by(logs, "action")),
            ("By Resource Type", count_by(logs, "resourceType")),
        ],
    )

    ws_logs = wb.create_sheet("Audit Trails")
    ws_logs.append(AUDIT_HEADERS)
    _style_header(ws_logs)
    for log in logs:
        ws_logs.append(audit_log_row(log))

    _autosize(ws_summary, ws_logs)
    return _save(wb)
