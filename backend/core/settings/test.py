# flake8: noqa
"""
Test settings: in-memory SQLite, fast password hashing, quiet logging.
"""

from .base import *

ENVIRONMENT = "test"

DEBUG = False
SECRET_KEY = "django-insecure-test-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

for logger_name in ["finance", "users", "django"]:
    LOGGING["loggers"][logger_name]["level"] = "WARNING"
