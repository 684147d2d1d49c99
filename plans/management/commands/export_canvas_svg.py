"""Export a business plan's strategy canvas as an SVG document."""

from __future__ import annotations

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from plans.models import BusinessPlan
from plans.services import render_plan_canvas


class Command(BaseCommand):
    """Render one plan's canvas to SVG without modifying the plan."""

    help = "Render a business plan's strategy canvas to SVG (stdout or --out file)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("plan_id", type=int, help="Primary key of the BusinessPlan.")
        parser.add_argument(
            "--out",
            default=None,
            help="Write the SVG to this path instead of stdout.",
        )
        parser.add_argument(
            "--width",
            type=float,
            default=None,
            help="Drawing width in pixels (defaults to CANVAS_DEFAULT_WIDTH).",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        plan_id: int = options["plan_id"]
        out: str | None = options["out"]
        width: float | None = options["width"]

        if width is not None and width <= 0:
            raise CommandError("--width must be positive.")

        plan = BusinessPlan.objects.select_related("organisation").filter(pk=plan_id).first()
        if plan is None:
            raise CommandError(f"BusinessPlan {plan_id} does not exist.")

        svg = render_plan_canvas(plan, width=width).rendered.svg
        if out is None:
            self.stdout.write(svg)
            return None

        Path(out).write_text(svg, encoding="utf-8")
        self.stdout.write(self.style.SUCCESS(f"Wrote canvas for plan {plan_id} to {out}."))
        return None
