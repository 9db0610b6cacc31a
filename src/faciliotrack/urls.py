"""URL configuration for the FacilioTrack dashboard."""

from django.urls import include, path

from faciliotrack.views import health_check

urlpatterns = [
    path("health/", health_check, name="health_check"),
    path("accounts/", include("accounts.urls")),
    path("", include("assets.urls")),
]
