from .base import *

DEBUG = False

# Base SQLite en mémoire: l'index unique partiel (un cycle actif par client)
# y est supporté comme sous PostgreSQL.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
}

STORAGES["staticfiles"] = {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CELERY_TASK_ALWAYS_EAGER = True

RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_KEY_SECRET = "test_key_secret"
RAZORPAY_WEBHOOK_SECRET = "test_webhook_secret"

LOGGING["loggers"]["assistdesk"]["level"] = "WARNING"
