"""Database models for organisations and their business plans."""

from __future__ import annotations

from django.conf import settings
from django.db import models

from canvas.dto import CanvasSnapshot
from canvas.snapshot_codec import decode_canvas_snapshot


class Organisation(models.Model):
    """A business whose members share access to its plans."""

    name = models.CharField(max_length=120)
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="organisations",
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("name", "id")

    def __str__(self) -> str:
        """Return the organisation name for display contexts."""

        return self.name


class BusinessPlan(models.Model):
    """A one-page business plan with an optional strategy canvas.

    The `canvas` column stores the encoded CanvasSnapshot payload written by the
    canvas editor's commit callback. It stays null until the editor first
    publishes for this plan.
    """

    organisation = models.ForeignKey(Organisation, on_delete=models.CASCADE, related_name="plans")
    name = models.CharField(max_length=120)
    problem = models.TextField(blank=True)
    unique_selling_point = models.TextField(blank=True)
    target_market = models.TextField(blank=True)
    key_metrics = models.TextField(blank=True)
    identified_operational_challenges = models.TextField(blank=True)
    risks_and_plan_b = models.TextField(blank=True)
    vision_3_5_years = models.TextField(blank=True)
    priorities_next_90_days = models.TextField(blank=True)
    canvas = models.JSONField(
        null=True,
        blank=True,
        help_text="Encoded strategy canvas snapshot (features, range, entities).",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-updated_at", "id")

    def __str__(self) -> str:
        """Return a concise display string."""

        return self.name

    def canvas_snapshot(self) -> CanvasSnapshot | None:
        """Decode the stored canvas payload, or None when nothing is stored yet."""

        if not isinstance(self.canvas, dict):
            return None
        return decode_canvas_snapshot(self.canvas)
