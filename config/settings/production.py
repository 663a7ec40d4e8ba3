"""
Production settings.

Every connection detail comes from the environment; startup fails when one is
missing. Logs are written as JSON for the log shipper.
"""

import os

from dotenv import load_dotenv

from .base import *  # noqa: F403,F405

load_dotenv()

# Docker image builds run collectstatic without a database or secrets
COLLECTSTATIC_ONLY = os.getenv("COLLECTSTATIC_ONLY", "0") == "1"

if not COLLECTSTATIC_ONLY:
    validate_required_env_vars()  # noqa: F405

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY") or "collectstatic-only"

DEBUG = False

ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if host]
if not ALLOWED_HOSTS:
    if not COLLECTSTATIC_ONLY:
        raise ValueError("DJANGO_ALLOWED_HOSTS must be set in production environment!")
    ALLOWED_HOSTS = ["*"]

if COLLECTSTATIC_ONLY:
    DATABASES = {"default": {"ENGINE": "django.db.backends.dummy"}}
else:
    DATABASES = {
        "default": postgres_database(  # noqa: F405
            options={
                "connect_timeout": 10,
                # Report queries over a large period are cut at 30 seconds
                "options": "-c statement_timeout=30000",
                "sslmode": os.getenv("DB_SSLMODE", "prefer"),
            }
        )
    }

CACHES = {"default": redis_cache("pos_admin_prod", max_connections=100)}  # noqa: F405

CELERY_BROKER_URL = os.getenv(
    "CELERY_BROKER_URL", redis_url(os.getenv("CELERY_REDIS_DB", "1"))  # noqa: F405
)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True

EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "noreply@posadmin.local")
SERVER_EMAIL = DEFAULT_FROM_EMAIL
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USE_TLS = os.getenv("EMAIL_USE_TLS", "True") == "True"
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "formatter": "json",
        },
        "errors": rotating_file_handler(  # noqa: F405
            "pos_admin_errors.log", "ERROR", "json", megabytes=50, backups=20
        ),
    },
    "root": {"handlers": ["console", "errors"], "level": "WARNING"},
    "loggers": {
        **pos_loggers(["console", "errors"], "INFO"),  # noqa: F405
        "django.request": {
            "handlers": ["console", "errors"],
            "level": "ERROR",
            "propagate": False,
        },
    },
}

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# TLS ends at the load balancer
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = os.getenv("SECURE_SSL_REDIRECT", "True") == "True"
SECURE_HSTS_SECONDS = 60 * 60 * 24 * 365
SECURE_HSTS_INCLUDE_SUBDOMAINS = True

validate_security_settings(DEBUG)  # noqa: F405
