"""WSGI entry point for bizplanner (e.g. `gunicorn bizplanner.wsgi`)."""

from __future__ import annotations

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bizplanner.settings")

application = get_wsgi_application()
