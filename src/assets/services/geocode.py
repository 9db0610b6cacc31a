"""Best-effort geocoding through the Google Geocoding API.

Lookups never raise: any failure returns ``ADDRESS_NOT_AVAILABLE`` (or
None for forward geocoding) and logs a warning. Successful results are
cached.
"""

import hashlib
import logging

import requests

from django.conf import settings
from django.core.cache import cache

from ..records import has_coordinates

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
ADDRESS_NOT_AVAILABLE = "Address not available"
GEOCODE_TIMEOUT = 5


def _cache_key(prefix, value):
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:32]
    return f"geocode:{prefix}:{digest}"


def _lookup(params):
    api_key = settings.GOOGLE_MAPS_API_KEY
    if not api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not set; skipping geocoding")
        return None
    try:
        response = requests.get(
            GEOCODE_URL,
            params={**params, "key": api_key},
            timeout=GEOCODE_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Geocoding request failed: %s", exc)
        return None
    if data.get("status") != "OK" or not data.get("results"):
        logger.warning("Geocoding returned status %s", data.get("status"))
        return None
    return data["results"][0]


def reverse_geocode(latitude, longitude):
    """Resolve coordinates into a formatted street address."""
    location = {"latitude": latitude, "longitude": longitude}
    if not has_coordinates(location):
        return ADDRESS_NOT_AVAILABLE
    latlng = f"{str(latitude).strip()},{str(longitude).strip()}"
    key = _cache_key("reverse", latlng)
    cached = cache.get(key)
    if cached:
        return cached
    result = _lookup({"latlng": latlng})
    if result is None:
        return ADDRESS_NOT_AVAILABLE
    address = result.get("formatted_address") or ADDRESS_NOT_AVAILABLE
    if address != ADDRESS_NOT_AVAILABLE:
        cache.set(key, address, settings.GEOCODE_CACHE_TTL)
    return address


def geocode_address(address):
    """Resolve an address into ``{"latitude": str, "longitude": str}``.

    Returns None when the address cannot be resolved.
    """
    address = (address or "").strip()
    if not address:
        return None
    key = _cache_key("forward", address.lower())
    cached = cache.get(key)
    if cached:
        return cached
    result = _lookup({"address": address})
    if result is None:
        return None
    point = (result.get("geometry") or {}).get("location") or {}
    if "lat" not in point or "lng" not in point:
        return None
    coordinates = {
        "latitude": str(point["lat"]),
        "longitude": str(point["lng"]),
    }
    cache.set(key, coordinates, settings.GEOCODE_CACHE_TTL)
    return coordinates


def location_address(location):
    """Reverse-geocode an asset location dict, or the placeholder."""
    if not has_coordinates(location):
        return ADDRESS_NOT_AVAILABLE
    return reverse_geocode(location.get("latitude"), location.get("longitude"))
