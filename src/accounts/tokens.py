"""Session storage for the asset backend's auth token.

The token issued by ``POST /auth/login`` is the only credential the
dashboard holds. It lives in the server-side session under
``authToken``; the signed-in user's profile sits beside it.
"""

import functools
import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect
from django.urls import reverse

from assets.services.client import TOKEN_SESSION_KEY

logger = logging.getLogger(__name__)

USER_SESSION_KEY = "authUser"
REMEMBER_ME_SESSION_KEY = "rememberMe"

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please login again."


def store_token(request, token, user=None, remember_me=False):
    """Persist a freshly issued token in a new session."""
    request.session.cycle_key()
    request.session[TOKEN_SESSION_KEY] = token
    request.session[USER_SESSION_KEY] = user or {}
    request.session[REMEMBER_ME_SESSION_KEY] = bool(remember_me)
    if remember_me:
        request.session.set_expiry(settings.REMEMBER_ME_SESSION_AGE)
    else:
        request.session.set_expiry(0)


def get_token(request):
    token = request.session.get(TOKEN_SESSION_KEY)
    if token and str(token).strip():
        return token
    return None


def get_user(request):
    return request.session.get(USER_SESSION_KEY) or None


def clear_token(request):
    request.session.flush()


def login_redirect(request, message=None):
    """Drop the session and send the user to the login page."""
    clear_token(request)
    if message:
        messages.warning(request, message)
    url = reverse(settings.LOGIN_URL)
    if request.method == "GET":
        url = f"{url}?{urlencode({'next': request.get_full_path()})}"
    return redirect(url)


def token_required(view_func):
    """Redirect to login unless the session holds a backend token."""

    @functools.wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not get_token(request):
            return login_redirect(request)
        return view_func(request, *args, **kwargs)

    return wrapper
