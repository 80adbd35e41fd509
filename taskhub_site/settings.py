# taskhub_site/settings.py
from pathlib import Path
import os

# --- DB driver shim (MySQL) ---
import pymysql
pymysql.install_as_MySQLdb()

# === Base paths ===
BASE_DIR = Path(__file__).resolve().parent.parent

# === .env loader (load early!) ===
from dotenv import load_dotenv
ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH, override=True)
else:
    load_dotenv(override=True)

# === Core flags ===
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

# Proxy headers
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = True

SITE_NAME = os.getenv("SITE_NAME", "TaskHub")
APPEND_SLASH = False

# === Secrets ===
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("DJANGO_SECRET_KEY is not set in environment variables")

# === Security (conditional on DEBUG) ===
if not DEBUG:
    SECURE_SSL_REDIRECT = os.getenv("SECURE_SSL_REDIRECT", "true").lower() == "true"
    SECURE_HSTS_SECONDS = int(os.getenv("SECURE_HSTS_SECONDS", "86400"))
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
else:
    SECURE_SSL_REDIRECT = False
    SECURE_HSTS_SECONDS = 0
    SECURE_HSTS_INCLUDE_SUBDOMAINS = False

X_FRAME_OPTIONS = "DENY"
SECURE_CONTENT_TYPE_NOSNIFF = True

# === Apps ===
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # project apps
    "main.apps.MainConfig",
    "support_app.apps.SupportAppConfig",
]

# Custom user
AUTH_USER_MODEL = "main.CustomUser"

# Phone numbers
PHONENUMBER_DEFAULT_REGION = os.getenv("PHONENUMBER_DEFAULT_REGION", "US")

# === Middleware ===
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # attaches request.notifier (real-time events)
    "support_app.middleware.NotifierMiddleware",
]

ROOT_URLCONF = "taskhub_site.urls"
WSGI_APPLICATION = "taskhub_site.wsgi.application"

# === Cache (rate limiting + notification dedupe) ===
if os.getenv("CACHE_BACKEND", "").lower() == "filebased":
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
            "LOCATION": os.getenv("CACHE_FILE_LOCATION", str(BASE_DIR / ".cache")),
            "TIMEOUT": int(os.getenv("CACHE_TIMEOUT", "300")),
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "taskhub-cache",
            "TIMEOUT": int(os.getenv("CACHE_TIMEOUT", "300")),
        }
    }

# === Templates (admin site only) ===
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

# === Database ===
# Row locks must never wait forever. DB_LOCK_WAIT_TIMEOUT is in seconds (InnoDB lock wait,
# sqlite busy timeout); DB_STATEMENT_TIMEOUT_MS is in milliseconds (MySQL max_execution_time).
DB_LOCK_WAIT_TIMEOUT = int(os.getenv("DB_LOCK_WAIT_TIMEOUT", "10"))
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "15000"))

if os.getenv("MYSQL_DB_NAME"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.mysql",
            "NAME": os.getenv("MYSQL_DB_NAME"),
            "USER": os.getenv("MYSQL_DB_USER", "taskhub"),
            "PASSWORD": os.getenv("MYSQL_PASSWORD", ""),
            "HOST": os.getenv("MYSQL_HOST", "127.0.0.1"),
            "PORT": os.getenv("MYSQL_PORT", "3306"),
            "OPTIONS": {
                "charset": "utf8mb4",
                "use_unicode": True,
                "init_command": (
                    "SET NAMES 'utf8mb4', sql_mode='STRICT_TRANS_TABLES', "
                    f"innodb_lock_wait_timeout={DB_LOCK_WAIT_TIMEOUT}, "
                    f"max_execution_time={DB_STATEMENT_TIMEOUT_MS}"
                ),
            },
            "CONN_MAX_AGE": int(os.getenv("DB_CONN_MAX_AGE", "300")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.getenv("SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
            # sqlite ignores SELECT ... FOR UPDATE; IMMEDIATE takes the write lock at BEGIN
            # so concurrent balance transactions queue instead of failing mid-write
            "OPTIONS": {"timeout": DB_LOCK_WAIT_TIMEOUT, "transaction_mode": "IMMEDIATE"},
        }
    }

# === Auth / Passwords ===
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator", "OPTIONS": {"min_length": 6}},
]

# JWT (python-jose)
JWT_SECRET = os.getenv("JWT_SECRET", SECRET_KEY)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_TTL_DAYS = int(os.getenv("JWT_TTL_DAYS", "7"))

# Rate limits for login/signup (django-ratelimit)
RATELIMIT_ENABLE = os.getenv("RATELIMIT_ENABLE", "true").lower() == "true"
AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10/m")

# === Internationalization ===
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("APP_TIMEZONE", "UTC")
USE_I18N = True
USE_TZ = True

# === Static ===
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# === Task engine ===
TASK_MIN_BALANCE = os.getenv("TASK_MIN_BALANCE", "2.00")
TASK_PROFIT_RATE = os.getenv("TASK_PROFIT_RATE", "0.05")
REFERRAL_PROFIT_RATE = os.getenv("REFERRAL_PROFIT_RATE", "0.10")

# === Withdrawals / deposits ===
WITHDRAWAL_DEFAULT_CURRENCY = os.getenv("WITHDRAWAL_DEFAULT_CURRENCY", "USDT")
WITHDRAWAL_DEFAULT_NETWORK = os.getenv("WITHDRAWAL_DEFAULT_NETWORK", "TRC20")
DEPOSIT_WEBHOOK_SECRET = os.getenv("DEPOSIT_WEBHOOK_SECRET", "")

# === Real-time notifier ===
REALTIME_NOTIFIER = {
    "BACKEND": os.getenv("REALTIME_NOTIFIER_BACKEND", "support_app.notifications.LogNotifier"),
    "OPTIONS": {},
}
if os.getenv("REALTIME_RELAY_URL"):
    REALTIME_NOTIFIER = {
        "BACKEND": "support_app.notifications.RelayNotifier",
        "OPTIONS": {
            "url": os.getenv("REALTIME_RELAY_URL"),
            "token": os.getenv("REALTIME_RELAY_TOKEN", ""),
            "timeout": float(os.getenv("REALTIME_RELAY_TIMEOUT", "3")),
        },
    }

# Telegram mirror for admin alerts (optional)
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID", "")
ADMIN_ALERT_DEDUP_TTL = int(os.getenv("ADMIN_ALERT_DEDUP_TTL", "300"))

# === Logging ===
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "plain"}},
    "loggers": {
        "main": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "support_app": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "django.request": {"handlers": ["console"], "level": "WARNING"},
    },
}

# === Defaults ===
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
