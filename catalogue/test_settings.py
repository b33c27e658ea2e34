"""
Test settings configuration for running tests in CI/CD and locally.
Uses an in-memory database, dummy caches and in-process task execution.
"""

from catalogue.settings import *

# Test database configuration - use SQLite for faster tests
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",  # In-memory database for speed
    }
}

# Use dummy cache backend for testing to avoid Redis client issues
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.dummy.DummyCache",
    },
    "product_cache": {
        "BACKEND": "django.core.cache.backends.dummy.DummyCache",
    },
}

# Celery configuration for testing - execute tasks synchronously
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Test client talks plain HTTP
SECURE_SSL_REDIRECT = False

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

# Disable password validation for faster tests
AUTH_PASSWORD_VALIDATORS = []

# Use simpler password hasher for faster tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Logging configuration for tests - only errors
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
        "level": "ERROR",
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": "ERROR",
            "propagate": False,
        },
    },
}
