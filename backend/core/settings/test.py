"""
Settings for the test suite.
In-memory SQLite, fast hashing and no throttling state between tests.
"""
import copy

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = "test-secret-key-not-for-production-use-0123456789"

ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.dummy.DummyCache',
    }
}

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}


class DisableMigrations:
    """Create every app's tables straight from its models."""

    def __contains__(self, item):
        return True

    def __getitem__(self, item):
        return None


MIGRATION_MODULES = DisableMigrations()

PASSWORD_RESET_EXPOSE_CODE = True

LOGGING = copy.deepcopy(LOGGING)  # noqa: F405
LOGGING['root']['level'] = 'WARNING'  # noqa: F405
for _logger in LOGGING['loggers'].values():  # noqa: F405
    _logger['level'] = 'WARNING'
