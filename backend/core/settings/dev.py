from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

PASSWORD_RESET_EXPOSE_CODE = True

CORS_ALLOW_ALL_ORIGINS = True
