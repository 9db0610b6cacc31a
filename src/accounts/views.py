"""Authentication views for FacilioTrack.

Credentials are checked by the asset backend; the dashboard only keeps
the token it hands back.
"""

import logging

from django_ratelimit.decorators import ratelimit

from django.contrib import messages
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme

from assets.services.client import ApiClient, ApiError, AuthenticationError

from .forms import LoginForm
from .tokens import clear_token, get_token, store_token

logger = logging.getLogger(__name__)


def _profile(token):
    """Fetch the signed-in user when the login response omits it."""
    try:
        return ApiClient.with_token(token).get_profile().get("user")
    except ApiError as exc:
        logger.warning("Could not load profile after login: %s", exc)
        return None


def _safe_next(request):
    next_url = request.GET.get("next", "")
    if next_url and url_has_allowed_host_and_scheme(
        next_url,
        allowed_hosts={request.get_host()},
        require_https=request.is_secure(),
    ):
        return next_url
    return None


@ratelimit(key="ip", rate="5/m", method="POST", block=False)
def login_view(request):
    """Sign in against the asset backend and keep its token."""
    if get_token(request):
        return redirect("assets:dashboard")

    if getattr(request, "limited", False):
        messages.error(
            request, "Too many login attempts. Please try again shortly."
        )
        return render(request, "registration/login.html", {"form": LoginForm()})

    if request.method == "POST":
        form = LoginForm(request.POST)
        if form.is_valid():
            email = form.cleaned_data["email"]
            try:
                body = ApiClient.with_token(None).login(
                    email, form.cleaned_data["password"]
                )
            except AuthenticationError:
                form.add_error(None, "Invalid email or password.")
            except ApiError as exc:
                logger.warning("Login failed for %s: %s", email, exc)
                form.add_error(None, exc.message)
            else:
                token = body.get("token")
                if not token:
                    form.add_error(None, body.get("message") or "Login failed")
                else:
                    store_token(
                        request,
                        token,
                        user=body.get("user") or _profile(token),
                        remember_me=form.cleaned_data["remember_me"],
                    )
                    logger.info("User %s signed in", email)
                    return redirect(_safe_next(request) or "assets:dashboard")
    else:
        form = LoginForm()

    return render(request, "registration/login.html", {"form": form})


def logout_view(request):
    """Handle user logout."""
    clear_token(request)
    messages.success(request, "You have been logged out.")
    return redirect("accounts:login")
