"""Django settings for the FacilioTrack dashboard."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get(
    "SECRET_KEY", "dev-secret-key-change-in-production"
)

DEBUG = os.environ.get("DEBUG", "True").lower() in ("true", "1", "yes")

ALLOWED_HOSTS = [
    h.strip()
    for h in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
]
# Always allow localhost for internal health checks (e.g. Docker healthcheck)
for _h in ("localhost", "127.0.0.1"):
    if _h not in ALLOWED_HOSTS:
        ALLOWED_HOSTS.append(_h)

INSTALLED_APPS = [
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_htmx",
    "accounts",
    "assets",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_htmx.middleware.HtmxMiddleware",
    "django_ratelimit.middleware.RatelimitMiddleware",
]

ROOT_URLCONF = "faciliotrack.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
                "faciliotrack.context_processors.site_settings",
                "faciliotrack.context_processors.current_user",
            ],
        },
    },
]

WSGI_APPLICATION = "faciliotrack.wsgi.application"
ASGI_APPLICATION = "faciliotrack.asgi.application"

# Asset records live in the remote backend; the dashboard keeps no
# database of its own.
DATABASES = {}

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STATICFILES_DIRS = [BASE_DIR / "static"]

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

# Custom rate limit view returns 429 with Retry-After header
RATELIMIT_VIEW = "faciliotrack.views.ratelimited_view"
EXPORT_RATE_LIMIT = os.environ.get("EXPORT_RATE_LIMIT", "30/h")

LOGIN_URL = "accounts:login"
LOGIN_REDIRECT_URL = "assets:dashboard"
LOGOUT_REDIRECT_URL = "accounts:login"

# CSRF/session security for production
if not DEBUG:
    CSRF_COOKIE_SECURE = True
    SESSION_COOKIE_SECURE = True
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
    CSRF_TRUSTED_ORIGINS = [f"https://{h}" for h in ALLOWED_HOSTS]

# Sessions hold the backend auth token and are kept in the cache.
SESSION_ENGINE = "django.contrib.sessions.backends.cache"
SESSION_COOKIE_AGE = int(os.environ.get("SESSION_COOKIE_AGE", "1209600"))
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
# Sessions without "remember me" end when the browser closes; with it
# they last this many seconds.
REMEMBER_ME_SESSION_AGE = int(
    os.environ.get("REMEMBER_ME_SESSION_AGE", str(30 * 24 * 60 * 60))
)

MESSAGE_STORAGE = "django.contrib.messages.storage.session.SessionStorage"

# Site configuration
SITE_NAME = os.environ.get("SITE_NAME", "FacilioTrack")

# Remote asset backend
ASSET_API_BASE_URL = os.environ.get(
    "ASSET_API_BASE_URL", "http://localhost:5021/api"
)
ASSET_API_TIMEOUT = float(os.environ.get("ASSET_API_TIMEOUT", "15"))

# Digital tag generation polling
DIGITAL_TAG_POLL_INITIAL_DELAY = float(
    os.environ.get("DIGITAL_TAG_POLL_INITIAL_DELAY", "1.0")
)
DIGITAL_TAG_POLL_BACKOFF = float(
    os.environ.get("DIGITAL_TAG_POLL_BACKOFF", "2.0")
)
DIGITAL_TAG_POLL_MAX_ATTEMPTS = int(
    os.environ.get("DIGITAL_TAG_POLL_MAX_ATTEMPTS", "4")
)

# Geocoding
GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY", "")
GEOCODE_CACHE_TTL = int(os.environ.get("GEOCODE_CACHE_TTL", "86400"))

ASSETS_PAGE_SIZE = int(os.environ.get("ASSETS_PAGE_SIZE", "25"))

# Cache configuration
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("CACHE_URL", "redis://localhost:6379/1"),
    }
}

# Logging: tracebacks reach container logs even with DEBUG=False
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
        "assets": {
            "handlers": ["console"],
            "level": os.environ.get("ASSETS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "accounts": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

# Startup validation
from django.core.exceptions import ImproperlyConfigured

_missing = []

# In production, SECRET_KEY must be explicitly set
if not DEBUG and SECRET_KEY == "dev-secret-key-change-in-production":
    _missing.append("SECRET_KEY")

# In production, the backend URL must be explicitly set
if not DEBUG and not os.environ.get("ASSET_API_BASE_URL"):
    _missing.append("ASSET_API_BASE_URL")

# ALLOWED_HOSTS must be explicitly set in production
if not DEBUG and ALLOWED_HOSTS == ["localhost", "127.0.0.1"]:
    _missing.append("ALLOWED_HOSTS")

if _missing:
    raise ImproperlyConfigured(
        f"Missing required environment variable(s): {', '.join(_missing)}. "
        f"See .env.example for all required variables."
    )
