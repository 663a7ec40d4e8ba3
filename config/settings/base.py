"""
Base Django settings for the POS admin platform.
Common settings shared across all environments.
"""

import os
from copy import deepcopy
from datetime import timedelta
from pathlib import Path

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Application definition
INSTALLED_APPS = [
    "django_prometheus",  # Must be first for proper metrics collection
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party apps
    "rest_framework",
    "rest_framework_simplejwt",
    "rest_framework_simplejwt.token_blacklist",
    "django_fsm",
    "import_export",
    # POS apps
    "apps.core",
    "apps.inventory",
    "apps.procurement",
    "apps.crm",
    "apps.sales",
    "apps.reporting",
]

MIDDLEWARE = [
    "django_prometheus.middleware.PrometheusBeforeMiddleware",  # Must be first
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.gzip.GZipMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",  # Must be last
]

ROOT_URLCONF = "config.urls"

# Printable pages (receipts, purchase orders, reports) live in the app template dirs
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

WSGI_APPLICATION = "config.wsgi.application"

# Users log in with their email address
AUTH_USER_MODEL = "core.User"

# Session login is only used for the printable report pages
LOGIN_URL = "/accounts/login/"
LOGIN_REDIRECT_URL = "/reports/"
LOGOUT_REDIRECT_URL = "/accounts/login/"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {"min_length": 8},
    },
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Password reset links are valid for one day
PASSWORD_RESET_TIMEOUT = 60 * 60 * 24

# Internationalization
LANGUAGE_CODE = "en"
TIME_ZONE = os.getenv("DJANGO_TIME_ZONE", "Asia/Colombo")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Product images, organization logos and supplier invoices
MEDIA_URL = "media/"
MEDIA_ROOT = BASE_DIR / "media"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# The POS cart lives in the session for the length of a shift
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_AGE = 60 * 60 * 12

CSRF_COOKIE_HTTPONLY = True
CSRF_COOKIE_SAMESITE = "Lax"

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "SAMEORIGIN"
SECURE_REFERRER_POLICY = "strict-origin-when-cross-origin"

# Django REST Framework Configuration
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
        "rest_framework.parsers.MultiPartParser",
    ],
    "EXCEPTION_HANDLER": "apps.core.exceptions.api_exception_handler",
    "TEST_REQUEST_DEFAULT_FORMAT": "json",
}

# JWT Configuration: short access tokens, rotated refresh tokens that are
# blacklisted on logout and on rotation
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.getenv("JWT_ACCESS_MINUTES", "30"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.getenv("JWT_REFRESH_DAYS", "7"))),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": True,
    "UPDATE_LAST_LOGIN": True,
    "AUTH_HEADER_TYPES": ("Bearer",),
}

# Celery Configuration
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 5 * 60
CELERY_TASK_SOFT_TIME_LIMIT = 4 * 60

PROMETHEUS_EXPORT_MIGRATIONS = False

GZIP_MIN_LENGTH = 200

# Front-end application used to build password reset links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Branding printed on report and receipt headers
POS_COMPANY_NAME = os.getenv("POS_COMPANY_NAME", "Inzeedo Corp")
POS_SYSTEM_NAME = "POS Admin System"

# Business settings of a new organization start from these
POS_DEFAULT_TAX_RATE = os.getenv("POS_DEFAULT_TAX_RATE", "8.00")
POS_DEFAULT_CURRENCY = os.getenv("POS_DEFAULT_CURRENCY", "LKR")

# Barcodes generated for products without one use this GS1 prefix
PRODUCT_BARCODE_PREFIX = os.getenv("PRODUCT_BARCODE_PREFIX", "899")

LOGS_DIR = BASE_DIR / "logs"
LOGS_DIR.mkdir(exist_ok=True)


# Environment helpers shared by development and production

REQUIRED_ENV_VARS = {
    "DJANGO_SECRET_KEY": "Django secret key for cryptographic signing",
    "POSTGRES_DB": "PostgreSQL database name",
    "POSTGRES_USER": "PostgreSQL username",
    "POSTGRES_PASSWORD": "PostgreSQL password",
    "POSTGRES_HOST": "PostgreSQL host",
    "REDIS_HOST": "Redis host",
}

DEV_SECRET_KEY = "dev-secret-key-change-in-production"


def validate_required_env_vars():
    """
    Raise ``ValueError`` naming every required environment variable that is
    not set.
    """
    missing = [
        f"  - {name} ({description})"
        for name, description in REQUIRED_ENV_VARS.items()
        if not os.getenv(name)
    ]
    if missing:
        raise ValueError(
            "Missing required environment variables:\n"
            + "\n".join(missing)
            + "\n\nSet them in the .env file or the environment."
        )


def validate_security_settings(debug_mode):
    if debug_mode or os.getenv("COLLECTSTATIC_ONLY") == "1":
        return
    secret_key = os.getenv("DJANGO_SECRET_KEY", "")
    if secret_key == DEV_SECRET_KEY:
        raise ValueError("DJANGO_SECRET_KEY must be changed from default value in production!")
    if len(secret_key) < 50:
        raise ValueError("DJANGO_SECRET_KEY must be at least 50 characters long in production!")


def postgres_database(defaults=None, options=None):
    """
    DATABASES entry for PostgreSQL (psycopg) with django-prometheus query
    metrics, read from the ``POSTGRES_*`` variables.
    """
    defaults = defaults or {}
    database = {
        "ENGINE": "django_prometheus.db.backends.postgresql",
        "NAME": os.getenv("POSTGRES_DB", defaults.get("NAME")),
        "USER": os.getenv("POSTGRES_USER", defaults.get("USER")),
        "PASSWORD": os.getenv("POSTGRES_PASSWORD", defaults.get("PASSWORD")),
        "HOST": os.getenv("POSTGRES_HOST", defaults.get("HOST")),
        "PORT": os.getenv("POSTGRES_PORT", "5432"),
        # Checkout, goods receipt and refunds rely on row locks inside a transaction
        "ATOMIC_REQUESTS": True,
        "CONN_MAX_AGE": 600,
    }
    if options:
        database["OPTIONS"] = options
    return database


def redis_url(db_index="0"):
    host = os.getenv("REDIS_HOST", "redis")
    port = os.getenv("REDIS_PORT", "6379")
    password = os.getenv("REDIS_PASSWORD", "")
    auth = f":{password}@" if password else ""
    return f"redis://{auth}{host}:{port}/{db_index}"


REDIS_CACHE_OPTIONS = {
    "CLIENT_CLASS": "django_redis.client.DefaultClient",
    "SOCKET_CONNECT_TIMEOUT": 5,
    "SOCKET_TIMEOUT": 5,
    "RETRY_ON_TIMEOUT": True,
}


def redis_cache(prefix, timeout=300, max_connections=50):
    """django-redis cache entry, instrumented by django-prometheus."""
    options = deepcopy(REDIS_CACHE_OPTIONS)
    options["CONNECTION_POOL_KWARGS"] = {
        "max_connections": max_connections,
        "retry_on_timeout": True,
    }
    return {
        "BACKEND": "django_prometheus.cache.backends.redis.RedisCache",
        "LOCATION": redis_url(os.getenv("REDIS_DB", "0")),
        "OPTIONS": options,
        "KEY_PREFIX": prefix,
        "TIMEOUT": timeout,
    }


# Loggers of the POS apps; checkouts, goods receipts and exports log at INFO
POS_APP_LOGGERS = (
    "apps.core",
    "apps.inventory",
    "apps.procurement",
    "apps.crm",
    "apps.sales",
    "apps.reporting",
)


def pos_loggers(handlers, level):
    """``loggers`` entries for the POS apps plus Django and Celery."""
    loggers = {
        "django": {"handlers": handlers, "level": "INFO", "propagate": False},
        "celery": {"handlers": handlers, "level": level, "propagate": False},
    }
    for name in POS_APP_LOGGERS:
        loggers[name] = {"handlers": handlers, "level": level, "propagate": False}
    return loggers


def rotating_file_handler(filename, level, formatter, megabytes=10, backups=5):
    return {
        "level": level,
        "class": "logging.handlers.RotatingFileHandler",
        "filename": LOGS_DIR / filename,
        "maxBytes": 1024 * 1024 * megabytes,
        "backupCount": backups,
        "formatter": formatter,
    }
