"""Accessors for asset, audit log and asset type records.

Records are the JSON objects returned by the asset backend and are kept
as plain dicts. This module names the well-known keys and the
conventions the rest of the app relies on (unset locations, project
naming, digital asset blocks) so templates and services do not repeat
the lookups.
"""

import copy
from datetime import datetime, timezone

STATUS_CHOICES = [
    ("active", "Active"),
    ("inactive", "Inactive"),
    ("maintenance", "Maintenance"),
    ("retired", "Retired"),
]

PRIORITY_CHOICES = [
    ("low", "Low"),
    ("medium", "Medium"),
    ("high", "High"),
    ("critical", "Critical"),
]

MOBILITY_CHOICES = [
    ("movable", "Movable"),
    ("immovable", "Immovable"),
]

SCAN_TYPE_CHOICES = [
    ("qr", "QR Code"),
    ("barcode", "Barcode"),
    ("nfc", "NFC"),
    ("manual", "Manual"),
]

# Keys of the digital asset blocks inside ``asset["digitalAssets"]``
DIGITAL_ASSET_KINDS = ("qrCode", "barcode", "nfcData")

DIGITAL_ASSET_LABELS = {
    "qrCode": "QR Code",
    "barcode": "Barcode",
    "nfcData": "NFC",
    "all": "All digital tags",
}

SUB_ASSET_CATEGORIES = ("movable", "immovable")

DATE_FIELDS = ("createdAt", "updatedAt", "timestamp", "generatedAt")

UNSET_COORDINATES = ("", "0", "0.0")

NOT_AVAILABLE = "N/A"


def record_id(record):
    if not record:
        return None
    return record.get("_id")


def project_name(asset):
    """Return the project name, supporting the legacy flat key."""
    project = asset.get("project") or {}
    if isinstance(project, dict) and project.get("projectName"):
        return project["projectName"]
    return asset.get("projectName") or ""


def assigned_name(asset):
    assigned = asset.get("assignedTo") or {}
    if isinstance(assigned, dict):
        return assigned.get("name") or ""
    return ""


def assigned_email(asset):
    assigned = asset.get("assignedTo") or {}
    if isinstance(assigned, dict):
        return assigned.get("email") or ""
    return ""


def has_coordinates(location):
    """True when the location carries a real latitude/longitude pair.

    ``"0"/"0"`` (and empty strings) mean the coordinates were never set.
    """
    if not location:
        return False
    lat = str(location.get("latitude") or "").strip()
    lng = str(location.get("longitude") or "").strip()
    return not (lat in UNSET_COORDINATES and lng in UNSET_COORDINATES)


def location_is_set(location):
    """True when any part of the location is meaningful."""
    if not location:
        return False
    if has_coordinates(location):
        return True
    return any(
        str(location.get(key) or "").strip()
        for key in ("building", "floor", "room")
    )


def location_lines(location, address=None):
    """Human-readable location lines used by the exporters."""
    if not location_is_set(location):
        return []
    lines = []
    if address:
        lines.append(f"Address: {address}")
    for key in ("building", "floor", "room"):
        value = str(location.get(key) or "").strip()
        if value:
            lines.append(f"{key.title()}: {value}")
    if has_coordinates(location):
        lines.append(
            f"Coords: {location.get('latitude')}, {location.get('longitude')}"
        )
    return lines


def digital_asset(record, kind):
    """Return the ``digitalAssets`` block of the given kind, or None."""
    blocks = (record or {}).get("digitalAssets") or {}
    return blocks.get(kind) or None


def sub_assets(asset, category):
    return list(((asset or {}).get("subAssets") or {}).get(category) or [])


def audit_detail(log, key, default=NOT_AVAILABLE):
    details = log.get("details") or {}
    value = details.get(key)
    if value in (None, ""):
        return default
    return value


def parse_timestamp(value):
    """Parse an ISO-8601 timestamp into an aware datetime.

    Returns None for empty or unparseable values.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value, fmt="%Y-%m-%d"):
    parsed = parse_timestamp(value)
    return parsed.strftime(fmt) if parsed else ""


def format_datetime(value):
    return format_date(value, "%Y-%m-%d %H:%M")


def with_digital_asset(asset, kind, block, sub_asset=None):
    """Return a copy of ``asset`` with the digital asset block merged in.

    ``kind`` may be ``"all"``, in which case ``block`` is a mapping of
    every kind to its block. ``sub_asset`` is a ``(category, index)``
    pair targeting an entry of ``subAssets``.
    """
    updated = copy.deepcopy(asset)
    target = updated
    if sub_asset is not None:
        category, index = sub_asset
        target = updated.setdefault("subAssets", {}).setdefault(
            category, []
        )[index]
    blocks = target.get("digitalAssets") or {}
    if kind == "all":
        for name in DIGITAL_ASSET_KINDS:
            if block.get(name):
                blocks[name] = block[name]
    else:
        blocks[kind] = block
    target["digitalAssets"] = blocks
    return updated
