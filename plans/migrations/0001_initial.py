"""Create organisations and business plans."""

from __future__ import annotations

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    """Initial schema for the plans app."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Organisation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "members",
                    models.ManyToManyField(
                        blank=True,
                        related_name="organisations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("name", "id"),
            },
        ),
        migrations.CreateModel(
            name="BusinessPlan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("problem", models.TextField(blank=True)),
                ("unique_selling_point", models.TextField(blank=True)),
                ("target_market", models.TextField(blank=True)),
                ("key_metrics", models.TextField(blank=True)),
                ("identified_operational_challenges", models.TextField(blank=True)),
                ("risks_and_plan_b", models.TextField(blank=True)),
                ("vision_3_5_years", models.TextField(blank=True)),
                ("priorities_next_90_days", models.TextField(blank=True)),
                (
                    "canvas",
                    models.JSONField(
                        blank=True,
                        help_text="Encoded strategy canvas snapshot (features, range, entities).",
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organisation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="plans",
                        to="plans.organisation",
                    ),
                ),
            ],
            options={
                "ordering": ("-updated_at", "id"),
            },
        ),
    ]
