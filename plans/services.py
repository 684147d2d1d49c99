"""Service-layer functions for the plans app.

Services coordinate Django persistence (ORM, transactions) with the pure
`canvas` package. The plan row is the canvas editor's owner: the stored payload
is pushed into the editor as inbound data, and the editor's commit callback
writes local changes back to the row.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.db import transaction

from canvas.dto import CanvasSnapshot, EditorOptions
from canvas.editor import StrategyCanvasEditor
from canvas.operations import apply_operations
from canvas.render import RenderedCanvas
from canvas.scheduling import ManualScheduler
from canvas.snapshot_codec import comparison_key, encode_canvas_snapshot
from plans.models import BusinessPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CanvasRequestResult:
    """Outcome of a canvas API request against one plan."""

    snapshot: CanvasSnapshot
    rendered: RenderedCanvas
    applied: int = 0
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


def save_plan_canvas(plan: BusinessPlan, snapshot: CanvasSnapshot) -> None:
    """Persist a canvas snapshot onto its plan row."""

    plan.canvas = encode_canvas_snapshot(snapshot)
    plan.save(update_fields=["canvas", "updated_at"])
    logger.debug("Saved canvas for plan id=%s (%d entities).", plan.pk, len(snapshot.entities))


def canvas_width(value: object = None) -> float:
    """Return a usable drawing width from a request parameter or the configured default."""

    try:
        width = float(value) if value not in (None, "") else 0.0
    except (TypeError, ValueError):
        width = 0.0
    if not math.isfinite(width) or width <= 0:
        return float(settings.CANVAS_DEFAULT_WIDTH)
    return width


def open_plan_editor(
    plan: BusinessPlan,
    *,
    width: float | None = None,
    persist: bool = True,
) -> tuple[StrategyCanvasEditor, ManualScheduler]:
    """Create an editor owned by a plan and bring it to a settled state.

    The stored canvas (if any) is applied as inbound data before mounting, so
    the defaults are only published when the plan has no canvas yet. The first
    entity is named after the plan's organisation.

    Args:
        plan: Owning plan.
        width: Drawing width; defaults to `settings.CANVAS_DEFAULT_WIDTH`.
        persist: When False, the editor has no commit callback and the plan
            row is never written (read-only rendering).

    Returns:
        Tuple of (editor, scheduler). The caller pumps the scheduler after
        further edits and tears the editor down when done.
    """

    scheduler = ManualScheduler()
    resolved_width = canvas_width(width)
    editor = StrategyCanvasEditor(
        commit=(lambda snapshot: save_plan_canvas(plan, snapshot)) if persist else None,
        options=EditorOptions(self_display_name=plan.organisation.name),
        scheduler=scheduler,
        measure_container=lambda: resolved_width,
    )
    editor.set_value(plan.canvas)
    editor.mount()
    scheduler.flush()
    return editor, scheduler


def render_plan_canvas(
    plan: BusinessPlan,
    *,
    width: float | None = None,
    persist: bool = False,
) -> CanvasRequestResult:
    """Settle and render a plan's canvas.

    With `persist`, a plan without a canvas gets the defaults stored so the
    entity ids a client sees stay valid for later operations. Exports leave the
    row untouched.
    """

    editor, _scheduler = open_plan_editor(plan, width=width, persist=persist)
    try:
        return CanvasRequestResult(snapshot=editor.snapshot(), rendered=editor.render())
    finally:
        editor.teardown()


def apply_canvas_request(
    plan: BusinessPlan,
    payload: Mapping[str, Any],
    *,
    width: float | None = None,
) -> CanvasRequestResult:
    """Apply a client canvas request to a plan.

    The payload may carry a full `snapshot` (the client's working copy, which
    replaces the stored canvas) and/or a list of `operations` applied in order
    afterwards. Every accepted change reaches the row through the editor's
    commit callback or, for a snapshot, through `save_plan_canvas`.

    Args:
        plan: Plan being edited.
        payload: Decoded JSON request body.
        width: Drawing width used for drag operations and rendering.

    Returns:
        CanvasRequestResult with the settled snapshot, rendering and any errors.
    """

    errors: list[str] = []
    applied = 0
    with transaction.atomic():
        editor, scheduler = open_plan_editor(plan, width=width)
        try:
            if "snapshot" in payload:
                snapshot = payload.get("snapshot")
                if isinstance(snapshot, Mapping):
                    before = comparison_key(editor.snapshot())
                    editor.set_value(snapshot)
                    scheduler.flush()
                    if comparison_key(editor.snapshot()) != before:
                        applied += 1
                        # The commit callback only saves when alignment changed the data.
                        if plan.canvas != encode_canvas_snapshot(editor.snapshot()):
                            save_plan_canvas(plan, editor.snapshot())
                else:
                    errors.append("snapshot must be an object.")

            if "operations" in payload:
                operations = payload.get("operations")
                if isinstance(operations, list):
                    result = apply_operations(editor, operations)
                    scheduler.flush()
                    applied += result.applied
                    errors.extend(result.errors)
                else:
                    errors.append("operations must be a list.")

            if "snapshot" not in payload and "operations" not in payload:
                errors.append("Provide `operations` and/or `snapshot`.")

            return CanvasRequestResult(
                snapshot=editor.snapshot(),
                rendered=editor.render(),
                applied=applied,
                errors=tuple(errors),
            )
        finally:
            editor.teardown()
