"""Base Django settings for the water-level service."""
from __future__ import annotations

from pathlib import Path
import os
from datetime import timezone

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


def env_float(name: str, default: float) -> float:
    raw = env(name, str(default))
    try:
        return float(raw)
    except ValueError as exc:
        raise ImproperlyConfigured(f"Environment variable {name} must be a number, got {raw!r}") from exc


def env_int(name: str, default: int) -> int:
    raw = env(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ImproperlyConfigured(f"Environment variable {name} must be an integer, got {raw!r}") from exc


SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "rest_framework",
    "backend.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "backend.urls"

WSGI_APPLICATION = "backend.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

DATABASES = {}

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "backend.api.exceptions.waterlevel_exception_handler",
}

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
DEFAULT_TIMEZONE = timezone.utc

STATIC_URL = "static/"

# Water-level pipeline -------------------------------------------------------
WATERLEVEL_DEFAULT_STATION = os.environ.get("WATERLEVEL_DEFAULT_STATION", "Esbjerg Havn I")
WATERLEVEL_CACHE_TTL = env_int("WATERLEVEL_CACHE_TTL", 300)
WATERLEVEL_HOURS_BACK = env_int("WATERLEVEL_HOURS_BACK", 48)
WATERLEVEL_HOURS_FORWARD = env_int("WATERLEVEL_HOURS_FORWARD", 48)
WATERLEVEL_HIGHLIGHT_HOURS = env_int("WATERLEVEL_HIGHLIGHT_HOURS", 6)
WATERLEVEL_HIGHLIGHT_LABEL = os.environ.get("WATERLEVEL_HIGHLIGHT_LABEL", "6 timer frem")
WATERLEVEL_PLAUSIBLE_MIN = env_float("WATERLEVEL_PLAUSIBLE_MIN", -400.0)
WATERLEVEL_PLAUSIBLE_MAX = env_float("WATERLEVEL_PLAUSIBLE_MAX", 700.0)
WATERLEVEL_REQUEST_TIMEOUT = env_float("WATERLEVEL_REQUEST_TIMEOUT", 10.0)
WATERLEVEL_REQUEST_RETRIES = env_int("WATERLEVEL_REQUEST_RETRIES", 1)

HARBOR_URL = os.environ.get("HARBOR_URL", "https://portesbjerg.dk/havneservice/vejrforhold")
HARBOR_DATUM_OFFSET_CM = env_float("HARBOR_DATUM_OFFSET_CM", 0.0)
DMI_SCRAPE_URL = os.environ.get("DMI_SCRAPE_URL", "https://www.dmi.dk/hav/vandstand/")
DMI_PUBLIC_URL = os.environ.get("DMI_PUBLIC_URL", "https://www.dmi.dk/NinJo2DmiDk/ninjo2dmidk")

TIDE_CYCLE_HOURS = env_float("TIDE_CYCLE_HOURS", 12.42)
TIDE_AMPLITUDE = env_float("TIDE_AMPLITUDE", 120.0)
TIDE_MEAN_LEVEL = env_float("TIDE_MEAN_LEVEL", 10.0)
TIDE_SPRING_BOOST = env_float("TIDE_SPRING_BOOST", 1.15)
TIDE_NEAP_REDUCTION = env_float("TIDE_NEAP_REDUCTION", 0.85)
TIDE_WEATHER_VARIATION = env_float("TIDE_WEATHER_VARIATION", 20.0)
TIDE_SURGE_AMPLITUDE = env_float("TIDE_SURGE_AMPLITUDE", 50.0)
TIDE_SURGE_THRESHOLD = env_float("TIDE_SURGE_THRESHOLD", 0.8)
TIDE_SHALLOW_WATER_RATIO = env_float("TIDE_SHALLOW_WATER_RATIO", 0.15)
TIDE_DIURNAL_RATIO = env_float("TIDE_DIURNAL_RATIO", 0.10)
