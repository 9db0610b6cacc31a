"""Context processors for site-wide template variables."""

from django.conf import settings


def site_settings(request):
    """Add site configuration to template context."""
    return {
        "SITE_NAME": settings.SITE_NAME,
    }


def current_user(request):
    """Expose the backend user stored at login."""
    from accounts.tokens import get_token, get_user

    session = getattr(request, "session", None)
    if session is None:
        return {"current_user": None, "is_logged_in": False}
    return {
        "current_user": get_user(request),
        "is_logged_in": bool(get_token(request)),
    }
