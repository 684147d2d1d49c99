"""Keep entity value vectors aligned with the feature list."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from canvas.dto import CanvasEntity, midpoint


def reconcile_values(values: Sequence[float], *, feature_count: int, fill: float) -> tuple[float, ...]:
    """Pad or truncate a single value vector to `feature_count` slots.

    Missing slots are appended at the end with `fill`; surplus slots are
    dropped from the end, so surviving values keep their index.
    """

    if len(values) < feature_count:
        return tuple(values) + (fill,) * (feature_count - len(values))
    return tuple(values[:feature_count])


def reconcile_entities(
    entities: Sequence[CanvasEntity],
    *,
    feature_count: int,
    min_y: float,
    max_y: float,
) -> tuple[tuple[CanvasEntity, ...], bool]:
    """Resize every entity's values to match the feature count.

    Args:
        entities: Entities to reconcile.
        feature_count: Current number of features.
        min_y: Lower bound of the value range (used for padding).
        max_y: Upper bound of the value range (used for padding).

    Returns:
        A tuple of (entities, changed). Entities that already match are returned
        as the same objects, and `changed` is False when nothing was resized, so
        a second pass with the same feature count is a no-op.
    """

    fill = midpoint(min_y, max_y)
    changed = False
    out: list[CanvasEntity] = []
    for entity in entities:
        if len(entity.values) == feature_count:
            out.append(entity)
            continue
        changed = True
        out.append(replace(entity, values=reconcile_values(entity.values, feature_count=feature_count, fill=fill)))
    return tuple(out), changed
