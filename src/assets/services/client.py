"""HTTP client for the remote asset backend.

Every call reads the bearer token through ``token_getter`` at request
time, so a login or logout in the session is picked up immediately.
Failures are raised as ``ApiError``; nothing is retried.
"""

import copy
import json
import logging
import re
from urllib.parse import quote

import requests

from django.conf import settings
from django.core.exceptions import ValidationError

from ..records import DIGITAL_ASSET_KINDS, SUB_ASSET_CATEGORIES, location_is_set

logger = logging.getLogger(__name__)

TOKEN_SESSION_KEY = "authToken"

OBJECT_ID_PATTERN = re.compile(r"^[a-fA-F0-9]{24}$")
ASSET_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,}$")

# Path segment used by the backend for each digital asset kind
DIGITAL_ASSET_ENDPOINTS = {
    "qrCode": "qr",
    "barcode": "barcode",
    "nfcData": "nfc",
    "all": "all",
}

# Key of the generated block in the generation response
DIGITAL_ASSET_RESPONSE_KEYS = {
    "qrCode": "qrCode",
    "barcode": "barcode",
    "nfcData": "nfcData",
    "all": "digitalAssets",
}

BARCODE_FORMATS = ("code128", "code39", "ean13", "ean8", "upca", "upce")

AUTH_FAILED_MESSAGE = "Your session has expired. Please login again."
TOKEN_MISSING_MESSAGE = "Authentication token not found. Please login again."


class ApiError(Exception):
    """A failed call to the asset backend."""

    def __init__(self, message, status=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload or {}


class AuthenticationError(ApiError):
    """Missing token, or the backend rejected it (HTTP 401)."""


def sanitize_update_payload(data):
    """Strip write-once identifiers from an asset update payload.

    ``tagId`` is removed at the top level and from every sub-asset, and
    an unset ``location`` is dropped rather than sent. The input is not
    modified.
    """
    payload = copy.deepcopy(dict(data))
    payload.pop("tagId", None)
    if "location" in payload and not location_is_set(payload["location"]):
        del payload["location"]
    subs = payload.get("subAssets")
    if isinstance(subs, dict):
        for category in SUB_ASSET_CATEGORIES:
            for sub in subs.get(category) or []:
                if isinstance(sub, dict):
                    sub.pop("tagId", None)
    return payload


def validate_generation_options(kind, options):
    """Validate digital tag generation options before sending them.

    Raises ValidationError on out-of-range values.
    """
    options = options or {}
    if kind in ("qrCode", "all"):
        size = options.get("size", options.get("qrSize"))
        if size is not None and not 100 <= int(size) <= 1000:
            raise ValidationError(
                "QR code size must be between 100 and 1000 pixels."
            )
    if kind in ("barcode", "all"):
        fmt = options.get("format", options.get("barcodeFormat"))
        if fmt and fmt not in BARCODE_FORMATS:
            raise ValidationError(
                f"Invalid barcode format. Supported formats: "
                f"{', '.join(BARCODE_FORMATS)}."
            )
        height = options.get("height")
        if height is not None and not 1 <= int(height) <= 100:
            raise ValidationError("Barcode height must be between 1 and 100.")
        scale = options.get("scale")
        if scale is not None and not 1 <= int(scale) <= 10:
            raise ValidationError("Barcode scale must be between 1 and 10.")


def _form_fields(data):
    """Flatten a payload into multipart form fields.

    Nested values are sent as JSON strings, as the backend expects for
    multipart asset submissions.
    """
    fields = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            fields[key] = json.dumps(value)
        else:
            fields[key] = str(value)
    return fields


def _segment(value):
    return quote(str(value), safe="")


class ApiClient:
    """Thin wrapper over the asset backend's REST endpoints."""

    def __init__(self, token_getter, base_url=None, timeout=None, session=None):
        self.token_getter = token_getter
        self.base_url = (base_url or settings.ASSET_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.ASSET_API_TIMEOUT
        self.session = session or requests.Session()

    @classmethod
    def for_request(cls, request):
        """Build a client that reads the token from the request session."""
        return cls(lambda: request.session.get(TOKEN_SESSION_KEY))

    @classmethod
    def with_token(cls, token, **kwargs):
        return cls(lambda: token, **kwargs)

    # --- Transport ---

    def _token(self):
        token = self.token_getter()
        if not token or not str(token).strip():
            raise AuthenticationError(TOKEN_MISSING_MESSAGE)
        return str(token).strip()

    def _url(self, path):
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _decode(response):
        try:
            body = response.json()
        except ValueError:
            return {}
        if isinstance(body, dict):
            return body
        return {"data": body}

    def _send(self, method, path, authenticated=True, **kwargs):
        headers = {"Accept": "application/json"}
        if authenticated:
            headers["Authorization"] = f"Bearer {self._token()}"
        if kwargs.get("json") is not None:
            headers["Content-Type"] = "application/json"
        try:
            response = self.session.request(
                method,
                self._url(path),
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(
                f"Could not reach the asset service: {exc}"
            ) from exc
        logger.debug("%s %s -> %s", method, path, response.status_code)
        if response.status_code == 401:
            logger.warning("%s %s rejected the auth token", method, path)
            raise AuthenticationError(AUTH_FAILED_MESSAGE, status=401)
        if not response.ok:
            body = self._decode(response)
            message = (
                body.get("message")
                or body.get("error")
                or f"HTTP error! status: {response.status_code}"
            )
            logger.warning(
                "%s %s returned %s: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise ApiError(message, status=response.status_code, payload=body)
        return response

    def request(
        self,
        method,
        path,
        *,
        json=None,
        data=None,
        files=None,
        params=None,
        fallback="Request failed",
        authenticated=True,
    ):
        """Send a request and return the decoded ``{success, ...}`` envelope.

        JSON bodies are sent with ``Content-Type: application/json``;
        multipart bodies (``files``) let requests set the boundary header.
        """
        response = self._send(
            method,
            path,
            authenticated=authenticated,
            json=json,
            data=data,
            files=files,
            params=params,
        )
        body = self._decode(response)
        if body.get("success") is False:
            raise ApiError(
                body.get("message") or fallback,
                status=response.status_code,
                payload=body,
            )
        return body

    def download(self, url):
        """Fetch a server-hosted file (tag image, NFC payload) as bytes."""
        if not url:
            raise ApiError("File URL is required")
        response = self._send("GET", url)
        return response.content

    # --- Auth ---

    def login(self, email, password):
        return self.request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            fallback="Login failed",
            authenticated=False,
        )

    def get_profile(self):
        return self.request("GET", "/auth/me", fallback="Failed to get profile")

    def health(self):
        return self.request("GET", "/health", authenticated=False)

    # --- Assets ---

    def get_assets(self, search=None):
        params = {"search": search} if search else None
        return self.request(
            "GET", "/assets", params=params, fallback="Failed to fetch assets"
        )

    def get_asset(self, asset_id):
        return self.request(
            "GET",
            f"/assets/{_segment(asset_id)}",
            fallback="Failed to fetch asset",
        )

    def create_asset(self, data, files=None):
        if files:
            return self.request(
                "POST",
                "/assets",
                data=_form_fields(data),
                files=files,
                fallback="Failed to create asset",
            )
        return self.request(
            "POST", "/assets", json=data, fallback="Failed to create asset"
        )

    def update_asset(self, asset_id, data, files=None):
        payload = sanitize_update_payload(data)
        path = f"/assets/{_segment(asset_id)}"
        if files:
            return self.request(
                "PUT",
                path,
                data=_form_fields(payload),
                files=files,
                fallback="Failed to update asset",
            )
        return self.request(
            "PUT", path, json=payload, fallback="Failed to update asset"
        )

    def delete_asset(self, asset_id):
        return self.request(
            "DELETE",
            f"/assets/{_segment(asset_id)}",
            fallback="Failed to delete asset",
        )

    def scan_asset(self, asset_id, scan):
        return self.request(
            "POST",
            f"/assets/{_segment(asset_id)}/scan",
            json=scan,
            fallback="Failed to scan asset",
        )

    def resolve_asset_id(self, identifier):
        """Resolve a tagId or an _id to the asset's _id."""
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("Asset ID is required.")
        if OBJECT_ID_PATTERN.match(identifier):
            return identifier
        if not ASSET_IDENTIFIER_PATTERN.match(identifier):
            raise ValidationError(
                "Asset ID must be at least 3 characters and contain only "
                "letters, numbers, hyphens, and underscores."
            )
        body = self.get_asset(identifier)
        asset = body.get("asset") or {}
        if not asset.get("_id"):
            raise ApiError(f'Asset with tag ID "{identifier}" not found.')
        return asset["_id"]

    # --- Asset types ---

    def get_asset_types(self):
        return self.request(
            "GET", "/asset-types", fallback="Failed to fetch asset types"
        )

    def create_asset_type(self, data):
        return self.request(
            "POST",
            "/asset-types",
            json=data,
            fallback="Failed to create asset type",
        )

    def update_asset_type(self, asset_type_id, data):
        return self.request(
            "PUT",
            f"/asset-types/{_segment(asset_type_id)}",
            json=data,
            fallback="Failed to update asset type",
        )

    def delete_asset_type(self, asset_type_id):
        return self.request(
            "DELETE",
            f"/asset-types/{_segment(asset_type_id)}",
            fallback="Failed to delete asset type",
        )

    # --- Audit trails ---

    def get_audit_logs(self):
        return self.request(
            "GET",
            "/export/audit-trails",
            fallback="Failed to fetch audit logs",
        )

    # --- Digital assets ---

    def generate_digital_asset(self, kind, asset_id, options=None):
        """Ask the backend to mint a QR code, barcode or NFC payload."""
        if kind not in DIGITAL_ASSET_ENDPOINTS:
            raise ValidationError(f"Unknown digital asset kind '{kind}'.")
        validate_generation_options(kind, options)
        endpoint = DIGITAL_ASSET_ENDPOINTS[kind]
        return self.request(
            "POST",
            f"/digital-assets/{endpoint}/{_segment(asset_id)}",
            json=dict(options or {}),
            fallback=f"{endpoint.upper()} generation failed",
        )

    def generate_sub_asset_digital_asset(
        self, kind, asset_id, index, category, options=None
    ):
        if kind not in DIGITAL_ASSET_KINDS:
            raise ValidationError(f"Unknown digital asset kind '{kind}'.")
        if category not in SUB_ASSET_CATEGORIES:
            raise ValidationError(f"Unknown sub-asset category '{category}'.")
        validate_generation_options(kind, options)
        endpoint = DIGITAL_ASSET_ENDPOINTS[kind]
        return self.request(
            "POST",
            f"/digital-assets/sub-asset/{_segment(asset_id)}/"
            f"{int(index)}/{category}/{endpoint}",
            json=dict(options or {}),
            fallback=f"Sub-asset {endpoint.upper()} generation failed",
        )

    # --- Permissions ---

    def get_admin_permissions(self, role="admin"):
        return self.request(
            "GET",
            f"/admin/permissions/assets/{_segment(role)}",
            fallback="Failed to fetch admin permissions",
        )

    def update_admin_permissions(self, permissions):
        return self.request(
            "PUT",
            "/admin/permissions/assets/admin",
            json={"permissions": permissions},
            fallback="Failed to update admin permissions",
        )

    def set_role_permissions(self, role, permissions):
        return self.request(
            "POST",
            "/admin/permissions/assets",
            json={"role": role, "permissions": permissions},
            fallback="Failed to update permissions",
        )
