"""Shared pytest fixtures for FacilioTrack tests."""

import json as jsonlib
from urllib.parse import urlsplit

import pytest
import requests

from django.conf import settings

from assets.factories import AssetFactory, AssetTypeFactory, AuditLogFactory
from assets.services.client import TOKEN_SESSION_KEY, ApiClient

BACKEND_URL = "http://backend.test/api"
TEST_TOKEN = "test-token"

settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

settings.ASSET_API_BASE_URL = BACKEND_URL
settings.GOOGLE_MAPS_API_KEY = ""
# Digital tag polling without sleeping
settings.DIGITAL_TAG_POLL_INITIAL_DELAY = 0
settings.DIGITAL_TAG_POLL_MAX_ATTEMPTS = 3


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Prevents rate-limit counters (django_ratelimit) and cached geocoder
    results from bleeding across tests.
    """
    from django.core.cache import cache

    cache.clear()


class FakeResponse:
    """Just enough of ``requests.Response`` for the API client."""

    def __init__(self, status_code=200, body=None, content=None):
        self.status_code = status_code
        self._body = body
        if content is None:
            content = jsonlib.dumps(body).encode() if body is not None else b""
        self.content = content

    @property
    def ok(self):
        return self.status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeBackend:
    """Routes ``requests.Session.request`` calls to canned responses.

    Routes are keyed by method and path relative to the API base URL.
    A route given a list of responses serves them in order and repeats
    the last one. A response may be an exception instance to raise.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, body=None, status=200, content=None):
        self.routes.setdefault((method, path), []).append(
            FakeResponse(status, body, content)
        )

    def fail(self, method, path, exc):
        self.routes.setdefault((method, path), []).append(exc)

    def _path(self, url):
        if url.startswith(BACKEND_URL):
            return url[len(BACKEND_URL):] or "/"
        return urlsplit(url).path

    def __call__(self, method, url, **kwargs):
        method = method.upper()
        path = self._path(url)
        self.calls.append({"method": method, "path": path, "url": url, **kwargs})
        queue = self.routes.get((method, path))
        if not queue:
            return FakeResponse(404, {"success": False, "message": "Not found"})
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def requests_to(self, method, path):
        return [
            call
            for call in self.calls
            if call["method"] == method and call["path"] == path
        ]


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(requests.Session, "request", fake)
    return fake


@pytest.fixture
def api_client(backend):
    return ApiClient.with_token(TEST_TOKEN)


@pytest.fixture
def logged_in_client(client, backend):
    """Test client whose session holds a backend token."""
    session = client.session
    session[TOKEN_SESSION_KEY] = TEST_TOKEN
    session["authUser"] = {
        "_id": "u1",
        "name": "Dana Admin",
        "email": "dana@example.com",
        "projectId": "p1",
        "projectName": "Tower One",
    }
    session.save()
    return client


@pytest.fixture
def asset():
    return AssetFactory(tagId="PJ-A001", brand="Carrier")


@pytest.fixture
def assets():
    return [
        AssetFactory(
            tagId="PJ-A001",
            assetType="Chiller",
            brand="Carrier",
            status="active",
            priority="high",
            updatedAt="2024-01-05T08:00:00.000Z",
        ),
        AssetFactory(
            tagId="PJ-A002",
            assetType="Pump",
            brand="Grundfos",
            status="maintenance",
            priority="low",
            updatedAt="2024-01-03T08:00:00.000Z",
        ),
        AssetFactory(
            tagId="PJ-B001",
            assetType="Chiller",
            brand="Trane",
            status="Active",
            priority="medium",
            updatedAt="2024-01-09T08:00:00.000Z",
        ),
    ]


@pytest.fixture
def asset_type():
    return AssetTypeFactory(
        name="Chiller",
        fields=[
            {"label": "Refrigerant", "fieldType": "text", "options": []},
            {
                "label": "Cooling Type",
                "fieldType": "dropdown",
                "options": ["Air", "Water"],
            },
        ],
    )


@pytest.fixture
def audit_logs():
    return [
        AuditLogFactory(
            action="create",
            resourceType="Asset",
            user={"_id": "u1", "name": "Dana Admin", "email": "dana@example.com"},
            details={"tagId": "PJ-A001", "brand": "Carrier"},
            timestamp="2024-03-01T12:00:00.000Z",
        ),
        AuditLogFactory(
            action="delete",
            resourceType="Asset",
            user={"_id": "u2", "name": "Sam Tech", "email": "sam@example.com"},
            details={"tagId": "PJ-A002"},
            timestamp="2024-03-02T12:00:00.000Z",
        ),
        AuditLogFactory(
            action="update",
            resourceType="AssetType",
            user={"_id": "u1", "name": "Dana Admin", "email": "dana@example.com"},
            details={"name": "Pump"},
            timestamp="2024-02-28T12:00:00.000Z",
        ),
    ]
