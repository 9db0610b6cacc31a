"""Tests for Excel exports."""

import openpyxl

from assets.factories import AssetFactory, DigitalAssetFactory
from assets.services.export import (
    ASSET_HEADERS,
    AUDIT_HEADERS,
    asset_row,
    audit_log_row,
    export_assets_xlsx,
    export_audit_logs_xlsx,
)


def _summary_rows(wb):
    return {
        row[0]: row[1]
        for row in wb["Summary"].iter_rows(values_only=True)
        if row and row[0] is not None
    }


class TestAssetExport:
    def test_workbook_has_summary_and_assets_sheets(self, assets):
        wb = openpyxl.load_workbook(export_assets_xlsx(assets))
        assert wb.sheetnames == ["Summary", "Assets"]
        ws = wb["Assets"]
        header = [cell.value for cell in ws[1]]
        assert header == ASSET_HEADERS
        assert ws.max_row == len(assets) + 1

    def test_header_is_styled(self, assets):
        wb = openpyxl.load_workbook(export_assets_xlsx(assets))
        cell = wb["Assets"]["A1"]
        assert cell.font.bold
        assert cell.fill.start_color.rgb.endswith("2563EB")

    def test_summary_counts(self, assets):
        wb = openpyxl.load_workbook(export_assets_xlsx(assets))
        summary = _summary_rows(wb)
        assert summary["Total Assets"] == 3
        assert summary["Active"] == 2
        assert summary["Maintenance"] == 1
        assert summary["Chiller"] == 2

    def test_empty_export(self):
        wb = openpyxl.load_workbook(export_assets_xlsx([]))
        assert wb["Assets"].max_row == 1
        assert _summary_rows(wb)["Total Assets"] == 0

    def test_geocoder_fills_address(self, asset):
        wb = openpyxl.load_workbook(
            export_assets_xlsx([asset], geocoder=lambda loc: "1 Main St")
        )
        row = [cell.value for cell in wb["Assets"][2]]
        assert row[ASSET_HEADERS.index("Complete Location")] == "1 Main St"

    def test_address_placeholder_without_geocoder(self, asset):
        row = asset_row(asset, "Address not available")
        assert row[ASSET_HEADERS.index("Complete Location")] == "Address not available"

    def test_row_values(self):
        qr = DigitalAssetFactory(url="/uploads/qr.png", generatedAt="2024-05-01T10:00:00Z")
        asset = AssetFactory(
            tagId="PJ-A001",
            assignedTo=None,
            digitalAssets={"qrCode": qr},
            compliance={"certifications": ["ISO 9001", "CE"]},
            tags=["hvac", "roof"],
        )
        row = dict(zip(ASSET_HEADERS, asset_row(asset, "")))
        assert row["Tag ID"] == "PJ-A001"
        assert row["Assigned To Name"] == "Unassigned"
        assert row["QR Code URL"] == "/uploads/qr.png"
        assert row["QR Code Generated"] == "2024-05-01"
        assert row["Barcode URL"] == ""
        assert row["Certifications"] == "ISO 9001, CE"
        assert row["Tags"] == "hvac, roof"
        assert row["Project Name"] == "Tower One"
        assert row["Coordinates"] == "25.2048, 55.2708"
        assert len(row) == len(ASSET_HEADERS)

    def test_unset_coordinates_are_blank(self):
        for location in ({"latitude": "0", "longitude": "0"}, {"latitude": 0}):
            asset = AssetFactory(location=location)
            row = dict(zip(ASSET_HEADERS, asset_row(asset, "")))
            assert row["Coordinates"] == ""


class TestAuditExport:
    def test_workbook_sheets(self, audit_logs):
        wb = openpyxl.load_workbook(export_audit_logs_xlsx(audit_logs))
        assert wb.sheetnames == ["Summary", "Audit Trails"]
        ws = wb["Audit Trails"]
        assert [cell.value for cell in ws[1]] == AUDIT_HEADERS
        assert ws.max_row == 4

    def test_summary_by_action(self, audit_logs):
        summary = _summary_rows(openpyxl.load_workbook(export_audit_logs_xlsx(audit_logs)))
        assert summary["Total Entries"] == 3
        assert summary["create"] == 1
        assert summary["AssetType"] == 1

    def test_row_uses_placeholder_for_missing_details(self, audit_logs):
        row = dict(zip(AUDIT_HEADERS, audit_log_row(audit_logs[1])))
        assert row["User"] == "Sam Tech"
        assert row["Tag ID"] == "PJ-A002"
        assert row["Brand"] == "N/A"
        assert row["Timestamp"] == "2024-03-02 12:00"
        assert '"tagId": "PJ-A002"' in row["Details"]
