"""
Django settings for the backoffice project.

Values that differ between environments are read from the process
environment, optionally populated from a ``.env`` file at the project root.
"""

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

env_path = BASE_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

# ---------------------------------
#   Security / Debug
# ---------------------------------
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-development-only")

DEBUG = os.getenv("DJANGO_DEBUG", "True") == "True"

_raw_hosts = os.getenv("DJANGO_ALLOWED_HOSTS", "")
if _raw_hosts.strip():
    ALLOWED_HOSTS = _raw_hosts.split()
else:
    ALLOWED_HOSTS = ["127.0.0.1", "localhost", "testserver"]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "django_filters",
    "users",
    "products",
    "stock",
    "order_fulfillment",
    "delivery",
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

ROOT_URLCONF = "backoffice.urls"
WSGI_APPLICATION = "backoffice.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# ---------------------------------
#   Database
# ---------------------------------
DATABASES = {
    "default": {
        "ENGINE": os.getenv("DATABASE_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.getenv("DATABASE_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.getenv("DATABASE_USER", ""),
        "PASSWORD": os.getenv("DATABASE_PASSWORD", ""),
        "HOST": os.getenv("DATABASE_HOST", ""),
        "PORT": os.getenv("DATABASE_PORT", ""),
        "ATOMIC_REQUESTS": False,
    }
}

AUTH_USER_MODEL = "users.User"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("DJANGO_TIME_ZONE", "America/Sao_Paulo")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------
#   REST framework
# ---------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
    ],
    "EXCEPTION_HANDLER": "backoffice.api_errors.business_exception_handler",
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.getenv("JWT_ACCESS_MINUTES", "60"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.getenv("JWT_REFRESH_DAYS", "7"))),
}

# ---------------------------------
#   Stock ledger
# ---------------------------------
# Attempts and base backoff (seconds) for stock writes that lose a
# compare-and-swap race or hit a transient database error.
STOCK_RETRY_ATTEMPTS = int(os.getenv("STOCK_RETRY_ATTEMPTS", "3"))
STOCK_RETRY_BACKOFF = float(os.getenv("STOCK_RETRY_BACKOFF", "0.05"))
LOW_STOCK_DEFAULT_LEVEL = 10

# ---------------------------------
#   Delivery routing
# ---------------------------------
# Average weight (kg) of one delivery stop; a vehicle gets
# max(1, capacity // DELIVERY_UNIT_WEIGHT) stops.
DELIVERY_UNIT_WEIGHT = int(os.getenv("DELIVERY_UNIT_WEIGHT", "50"))
DELIVERY_DEFAULT_REGION = "Zona Sul / Centro / Niterói"
# Ordered (label, keywords) pairs; the first rule with a keyword contained
# in the delivery address wins.
DELIVERY_REGION_RULES = [
    ("Zona Norte", ["norte", "nova américa", "madureira"]),
    ("Baixada", ["nova iguaçu", "topshopping"]),
]
DELIVERY_MAPS_BASE_URL = os.getenv("DELIVERY_MAPS_BASE_URL", "https://www.google.com/maps/dir/?api=1")

# ---------------------------------
#   Logging
# ---------------------------------
LOG_LEVEL = os.getenv("DJANGO_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
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
        "stock": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "order_fulfillment": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "delivery": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "backoffice": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
