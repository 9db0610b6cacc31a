"""Tests for the asset management commands."""

from io import StringIO
from unittest.mock import patch

import pytest

from django.core.management import call_command
from django.core.management.base import CommandError

from assets.factories import AssetFactory, DigitalAssetFactory
from assets.management.base import TOKEN_ENV_VAR


def _run(*args):
    out = StringIO()
    call_command(*args, stdout=out)
    return out.getvalue()


@pytest.fixture(autouse=True)
def _no_env_token(monkeypatch):
    monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)


class TestExportAssetsCommand:
    def test_requires_token(self, backend, tmp_path):
        with pytest.raises(CommandError, match="auth token is required"):
            _run("export_assets", f"--output={tmp_path / 'a.xlsx'}")
        assert backend.calls == []

    def test_token_from_environment(self, backend, assets, tmp_path, monkeypatch):
        monkeypatch.setenv(TOKEN_ENV_VAR, "env-token")
        backend.add("GET", "/assets", {"success": True, "assets": assets})
        _run("export_assets", f"--output={tmp_path / 'a.xlsx'}")
        headers = backend.calls[0]["headers"]
        assert headers["Authorization"] == "Bearer env-token"

    def test_writes_filtered_workbook(self, backend, assets, tmp_path):
        backend.add("GET", "/assets", {"success": True, "assets": assets})
        output = tmp_path / "assets.xlsx"
        text = _run(
            "export_assets",
            "--token=abc",
            "--status=active",
            f"--output={output}",
        )
        assert output.read_bytes()[:2] == b"PK"
        assert "2 asset(s) exported." in text

    def test_writes_pdf(self, backend, assets, tmp_path):
        backend.add("GET", "/assets", {"success": True, "assets": assets})
        output = tmp_path / "assets.pdf"
        with patch("assets.services.pdf._write_pdf", return_value=b"%PDF-1.7"):
            _run("export_assets", "--token=abc", "--format=pdf", f"--output={output}")
        assert output.read_bytes() == b"%PDF-1.7"

    def test_backend_error(self, backend, tmp_path):
        backend.add("GET", "/assets", {"message": "Backend down"}, status=500)
        with pytest.raises(CommandError, match="Backend down"):
            _run("export_assets", "--token=abc", f"--output={tmp_path / 'a.xlsx'}")


class TestExportAuditTrailsCommand:
    def test_filters_by_action(self, backend, audit_logs, tmp_path):
        backend.add("GET", "/export/audit-trails", {"success": True, "logs": audit_logs})
        output = tmp_path / "audit.xlsx"
        text = _run(
            "export_audit_trails",
            "--token=abc",
            "--action=delete",
            f"--output={output}",
        )
        assert output.exists()
        assert "1 entry exported." in text

    def test_all_entries(self, backend, audit_logs, tmp_path):
        backend.add("GET", "/export/audit-trails", {"success": True, "logs": audit_logs})
        text = _run(
            "export_audit_trails", "--token=abc", f"--output={tmp_path / 'a.xlsx'}"
        )
        assert "3 entries exported." in text


class TestGenerateDigitalTagCommand:
    def test_generates_for_tag_id(self, backend, asset):
        pk = asset["_id"]
        qr = DigitalAssetFactory(url="/uploads/qr_PJ-A001.png")
        backend.add("GET", "/assets/PJ-A001", {"success": True, "asset": asset})
        backend.add("GET", f"/assets/{pk}", {"success": True, "asset": asset})
        backend.add("POST", f"/digital-assets/qr/{pk}", {"success": True, "qrCode": qr})
        text = _run("generate_digital_tag", "PJ-A001", "--token=abc", "--size=400")
        assert "QR Code: /uploads/qr_PJ-A001.png" in text
        sent = backend.requests_to("POST", f"/digital-assets/qr/{pk}")[0]["json"]
        assert sent == {"size": 400, "includeUrl": True}

    def test_sub_asset(self, backend):
        parent = AssetFactory(subAssets={"movable": [], "immovable": [{"name": "Duct"}]})
        pk = parent["_id"]
        path = f"/digital-assets/sub-asset/{pk}/0/immovable/barcode"
        backend.add("GET", f"/assets/{pk}", {"success": True, "asset": parent})
        backend.add("POST", path, {"success": True, "barcode": DigitalAssetFactory()})
        _run(
            "generate_digital_tag",
            pk,
            "--token=abc",
            "--kind=barcode",
            "--sub-asset=immovable:0",
        )
        assert len(backend.requests_to("POST", path)) == 1

    def test_bad_sub_asset_reference(self, backend):
        with pytest.raises(CommandError, match="movable:0"):
            _run("generate_digital_tag", "PJ-A001", "--token=abc", "--sub-asset=roof")

    def test_sub_asset_index_out_of_range(self, backend, asset):
        pk = asset["_id"]
        backend.add("GET", "/assets/PJ-A001", {"success": True, "asset": asset})
        backend.add("GET", f"/assets/{pk}", {"success": True, "asset": asset})
        with pytest.raises(CommandError, match="does not exist"):
            _run(
                "generate_digital_tag",
                "PJ-A001",
                "--token=abc",
                "--sub-asset=movable:3",
            )
        path = f"/digital-assets/sub-asset/{pk}/3/movable/qr"
        assert backend.requests_to("POST", path) == []

    def test_invalid_identifier(self, backend):
        with pytest.raises(CommandError, match="at least 3 characters"):
            _run("generate_digital_tag", "#!", "--token=abc")

    def test_generation_failure(self, backend, asset):
        pk = asset["_id"]
        backend.add("GET", "/assets/PJ-A001", {"success": True, "asset": asset})
        backend.add("GET", f"/assets/{pk}", {"success": True, "asset": asset})
        backend.add(
            "POST", f"/digital-assets/qr/{pk}", {"message": "Generator offline"}, status=503
        )
        with pytest.raises(CommandError, match="Generator offline"):
            _run("generate_digital_tag", "PJ-A001", "--token=abc")
