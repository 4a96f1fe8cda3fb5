"""Base settings for all environments.

This configuration file defines the common settings used by the shared
calendar in every environment: installed apps, the database holding the
durable booking record, structured logging and the booking store options.
Environment-specific settings can be overridden in `dev.py`, `prod.py`
or `test.py`.
"""

import os
from pathlib import Path

import structlog
from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(BASE_DIR / '.env')

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'replace-me-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

ALLOWED_HOSTS: list[str] = os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',')

# Application definition

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    # Domain apps
    'apps.bookings',
]

# Database
# https://docs.djangoproject.com/en/5.0/ref/settings/#databases

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', BASE_DIR / 'db.sqlite3'),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

# Internationalization
# https://docs.djangoproject.com/en/5.0/topics/i18n/

LANGUAGE_CODE = 'da'

TIME_ZONE = 'Europe/Copenhagen'

USE_I18N = True

USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Shared booking calendar
BOOKINGS = {
    # Dotted path to a shared.infrastructure.storage.KeyValueStorage subclass
    'STORAGE_BACKEND': os.environ.get(
        'BOOKINGS_STORAGE_BACKEND', 'shared.infrastructure.storage.DjangoStorage'
    ),
    'STORAGE_OPTIONS': {},
    'STORAGE_KEY': os.environ.get('BOOKINGS_STORAGE_KEY', 'sommerhus_bookings'),
    'DEFAULT_OWNER_COLOR': os.environ.get('BOOKINGS_DEFAULT_OWNER_COLOR', '#2563eb'),
    # 0 = Monday ... 6 = Sunday
    'FIRST_WEEKDAY': int(os.environ.get('BOOKINGS_FIRST_WEEKDAY', 6)),
}

if BOOKINGS['STORAGE_BACKEND'].endswith('.FileStorage'):
    BOOKINGS['STORAGE_OPTIONS'] = {
        'directory': os.environ.get('BOOKINGS_STORAGE_DIR', BASE_DIR / 'var' / 'storage'),
    }

# Logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "structlog.stdlib.ProcessorFormatter",
            "processor": structlog.processors.JSONRenderer(),
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "level": LOG_LEVEL,
        }
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "apps": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "shared": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
