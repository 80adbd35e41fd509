# taskhub_site/settings_test.py
import os
import tempfile

os.environ.setdefault("DJANGO_SECRET_KEY", "test-only-secret-key")
os.environ.setdefault("DEBUG", "true")

from .settings import *  # noqa: E402,F401,F403

# File-backed so that worker threads in the concurrency tests share the database and
# queue on the IMMEDIATE write lock like production connections do.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.path.join(tempfile.gettempdir(), "taskhub.sqlite3"),
        "OPTIONS": {"timeout": 10, "transaction_mode": "IMMEDIATE"},
        "TEST": {"NAME": os.path.join(tempfile.gettempdir(), f"taskhub-test-{os.getpid()}.sqlite3")},
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
RATELIMIT_ENABLE = False
REALTIME_NOTIFIER = {"BACKEND": "support_app.notifications.LogNotifier", "OPTIONS": {}}
DEPOSIT_WEBHOOK_SECRET = "test-webhook-secret"
LOGGING["loggers"]["main"]["level"] = "WARNING"  # noqa: F405
CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache", "LOCATION": "taskhub-tests"}}
