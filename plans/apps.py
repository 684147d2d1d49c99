"""App configuration for the plans Django app."""

from __future__ import annotations

from django.apps import AppConfig


class PlansConfig(AppConfig):
    """Configuration for the `plans` app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "plans"
    verbose_name = "Business plans"
