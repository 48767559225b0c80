"""
Django settings for the block registry project.

For more information on this file, see
https://docs.djangoproject.com/en/4.2/topics/settings/
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

os.environ.setdefault("PYWIKIBOT2_NO_USER_CONFIG", "1")
os.environ.setdefault("PYWIKIBOT_NO_USER_CONFIG", "2")

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-development-key")

DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"

ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "globalblocking",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "globalblocking.middleware.GlobalBlockLookupMiddleware",
]

ROOT_URLCONF = "registry.urls"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DJANGO_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

GLOBAL_BLOCKING = {
    "CIDR_LIMIT": {"IPv4": 16, "IPv6": 19},
    "PREFIX_BUCKET_LENGTH": {"IPv4": None, "IPv6": None},
    "BLOCK_XFF": os.environ.get("GLOBAL_BLOCKING_BLOCK_XFF", "0") == "1",
    "ALLOWED_RANGES": [],
    "WIKI_ID": os.environ.get("GLOBAL_BLOCKING_WIKI_ID", "localwiki"),
    "REPLICA_DATABASE": "default",
    "PRIMARY_DATABASE": "default",
    "IDENTITY_RESOLVER": "local",
    "CENTRAL_WIKI": {"code": "meta", "family": "meta"},
    "MESSAGE_KEYS": {},
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "globalblocking": {
            "handlers": ["console"],
            "level": os.environ.get("GLOBAL_BLOCKING_LOG_LEVEL", "INFO"),
        },
    },
}
