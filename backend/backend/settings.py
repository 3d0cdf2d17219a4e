"""
Django settings for the Nitro economy backend.

Environment variables
---------------------
``DJANGO_SECRET_KEY``   Secret key (a development default is used otherwise).
``DJANGO_DEBUG``        ``"1"`` enables debug mode.
``DJANGO_ALLOWED_HOSTS`` Comma-separated host list.
``POSTGRES_DB``         When set, PostgreSQL is used (``POSTGRES_USER``,
                        ``POSTGRES_PASSWORD``, ``POSTGRES_HOST``,
                        ``POSTGRES_PORT``); SQLite otherwise.
``NITRO_LOG_LEVEL``     Level for the application loggers (default INFO).

Economy, risk and balancing tunables live in ``NITRO_ECONOMY``,
``NITRO_RISK`` and ``NITRO_BALANCING``.  Keys left out fall back to the
defaults in ``core.constants``.
"""

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY",
    "django-insecure-nitro-economy-development-key",
)

DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]


# ── Applications ────────────────────────────────────────────────────

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",
    "drf_spectacular",

    # Local apps
    "core",
    "economy",
    "antibot",
    "racing",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "backend.wsgi.application"


# ── Database ────────────────────────────────────────────────────────

if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", "postgres"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
            "ATOMIC_REQUESTS": False,
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ── Cache (used for the short-lived pre-race gate lookups) ──────────

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "nitro-economy",
    }
}


# ── Internationalisation ────────────────────────────────────────────

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"


# ── Django REST Framework ───────────────────────────────────────────

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "core.domain.exception_handler.domain_exception_handler",
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Nitro Economy API",
    "DESCRIPTION": (
        "Supply ledger, emission control, anti-bot risk assessment and "
        "reward balancing for the Nitro Points (NP) racing economy."
    ),
    "VERSION": "0.1.0",
    "SERVE_INCLUDE_SCHEMA": False,
}


# ── Logging ─────────────────────────────────────────────────────────

NITRO_LOG_LEVEL = os.environ.get("NITRO_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} [{name}] {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "core": {"handlers": ["console"], "level": NITRO_LOG_LEVEL, "propagate": False},
        "economy": {"handlers": ["console"], "level": NITRO_LOG_LEVEL, "propagate": False},
        "antibot": {"handlers": ["console"], "level": NITRO_LOG_LEVEL, "propagate": False},
        "racing": {"handlers": ["console"], "level": NITRO_LOG_LEVEL, "propagate": False},
    },
}


# ── Nitro economy tunables ──────────────────────────────────────────
# Only overrides go here; see core.constants for every default.

NITRO_ECONOMY = {
    # "base_daily_limit": 50_000,
    # "decay_rate_percent": 2.0,
    # "min_daily_limit": 5_000,
    # "emission_start_date": "2026-01-01",
}

NITRO_RISK = {
    # "block_seconds": 86_400,
    # "profile_cache_seconds": 5,
}

NITRO_BALANCING = {
    # "anti_farm_window": 20,
}
