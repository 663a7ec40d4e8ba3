"""
Development settings: local PostgreSQL and Redis from docker compose,
console email and verbose logs.
"""

import os

from dotenv import load_dotenv

from .base import *  # noqa: F403,F405

load_dotenv()

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", DEV_SECRET_KEY)  # noqa: F405

DEBUG = True

ALLOWED_HOSTS = os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,web,0.0.0.0").split(",")

DATABASES = {
    "default": postgres_database(  # noqa: F405
        defaults={"NAME": "pos_admin", "USER": "postgres", "PASSWORD": "postgres", "HOST": "db"}
    )
}

CACHES = {"default": redis_cache("pos_admin_dev")}  # noqa: F405

# Carts of an open shift survive a Redis flush
SESSION_ENGINE = "django.contrib.sessions.backends.db"

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", redis_url())  # noqa: F405
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)

EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "noreply@posadmin.local")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
        "file": rotating_file_handler("pos_admin_dev.log", "DEBUG", "verbose"),  # noqa: F405
    },
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": pos_loggers(["console", "file"], "DEBUG"),  # noqa: F405
}

SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

validate_security_settings(DEBUG)  # noqa: F405
