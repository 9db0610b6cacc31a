"""Project-level views for FacilioTrack."""

import logging

from django.http import JsonResponse

logger = logging.getLogger(__name__)


def ratelimited_view(request, exception=None):
    """Return 429 with Retry-After header on rate limit."""
    response = JsonResponse(
        {"error": "Rate limit exceeded. Please try again later."},
        status=429,
    )
    response["Retry-After"] = "60"
    return response


def health_check(request):
    """Health check endpoint for monitoring and load balancers.

    Reports the cache (which also backs sessions) and whether the asset
    backend answers its own health endpoint.
    """
    cache_ok = True
    try:
        from django.core.cache import cache

        cache.set("_health_check", "1", timeout=10)
        cache_ok = cache.get("_health_check") == "1"
    except Exception:
        logger.warning("Cache health check failed", exc_info=True)
        cache_ok = False

    from assets.services.client import ApiClient, ApiError

    backend_ok = True
    try:
        ApiClient.with_token(None).health()
    except ApiError as exc:
        logger.warning("Asset backend health check failed: %s", exc)
        backend_ok = False

    status = "ok" if cache_ok and backend_ok else "degraded"
    status_code = 200 if cache_ok else 503

    return JsonResponse(
        {"status": status, "cache": cache_ok, "backend": backend_ok},
        status=status_code,
    )
