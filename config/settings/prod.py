"""Production settings for the shared calendar.

This module extends the base settings with production specific
configuration. Ensure that sensitive values are provided via
environment variables.
"""

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F401,F403

# Never run with debug enabled in production
DEBUG = False

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get('DJANGO_ALLOWED_HOSTS', '').split(',')  # noqa: F405
    if host.strip()
]

if SECRET_KEY == 'replace-me-in-production':  # noqa: F405
    raise ImproperlyConfigured("Missing required environment variable: DJANGO_SECRET_KEY")
