"""
POS - Django Settings (Ledger Store Runtime)
============================================
Django hosts the ORM-backed ledger store only; there are no views or URLs.

Database defaults to SQLite next to the project. Override with
POS_DB_ENGINE / POS_DB_NAME / POS_DB_USER / POS_DB_PASSWORD /
POS_DB_HOST / POS_DB_PORT.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("POS_SECRET_KEY", "pos-dev-key-replace-before-deployment")

DEBUG = os.environ.get("POS_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "core.ledger_store",
    "core.bootstrap",
]

# ── Database ──────────────────────────────────────────────────
DATABASES = {
    "default": {
        "ENGINE": os.environ.get("POS_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("POS_DB_NAME", str(BASE_DIR / "pos.sqlite3")),
        "USER": os.environ.get("POS_DB_USER", ""),
        "PASSWORD": os.environ.get("POS_DB_PASSWORD", ""),
        "HOST": os.environ.get("POS_DB_HOST", ""),
        "PORT": os.environ.get("POS_DB_PORT", ""),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── POS rules (core.config.rules.PosSettings.from_mapping) ────
POS = {
    "CONSUMPTION_POLICY": os.environ.get("POS_CONSUMPTION_POLICY", "MANUAL"),
    "LINK_CASH_SALES": True,
    "QUEUE_HORIZON_HOURS": 12,
    "DONE_VISIBLE_MINUTES": 60,
    "TOP_PRODUCTS_LIMIT": 15,
    "ORDER_CODE_WIDTH": 3,
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "pos": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "pos",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "pos": {
            "level": os.environ.get("POS_LOG_LEVEL", "INFO"),
        },
    },
}
