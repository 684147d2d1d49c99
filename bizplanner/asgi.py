"""ASGI entry point for bizplanner (e.g. `uvicorn bizplanner.asgi:application`)."""

from __future__ import annotations

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bizplanner.settings")

application = get_asgi_application()
