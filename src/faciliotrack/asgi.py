"""ASGI config for the faciliotrack project."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "faciliotrack.settings")

application = get_asgi_application()
