"""DTO schema for strategy canvas data.

A strategy canvas compares several entities (the organisation itself plus its
competitors) across an ordered list of features. The DTOs here are:
- immutable (state changes replace values rather than mutate them),
- serializable for persistence via `canvas.snapshot_codec`,
- free of UI and database concerns.
"""

from __future__ import annotations

from dataclasses import dataclass


ENTITY_PALETTE: tuple[str, ...] = (
    "#fbbf24",  # amber
    "#60a5fa",  # blue
    "#34d399",  # emerald
    "#f472b6",  # pink
    "#c084fc",  # violet
    "#f87171",  # red
    "#22d3ee",  # cyan
)

DEFAULT_FEATURES: tuple[str, ...] = ("Price", "Location", "Returning Customers")
DEFAULT_MIN_Y = 0.0
DEFAULT_MAX_Y = 10.0
DEFAULT_ENTITY_NAME = "Us"
DEFAULT_CANVAS_WIDTH = 900
DEFAULT_CANVAS_HEIGHT = 720

CANVAS_HEIGHT_CHOICES: tuple[int, ...] = (360, 480, 600, 720, 840, 900, 1080)
MAX_CANVAS_HEIGHT = 1080


def palette_color(index: int) -> str:
    """Return the palette color for a creation-order index.

    Args:
        index: Zero-based creation index of the entity.

    Returns:
        A hex color string; the palette cycles once exhausted.
    """

    return ENTITY_PALETTE[index % len(ENTITY_PALETTE)]


def midpoint(min_y: float, max_y: float) -> float:
    """Return the value new feature slots are seeded with."""

    return (min_y + max_y) / 2


@dataclass(frozen=True, slots=True)
class CanvasEntity:
    """A named data series plotted on the canvas.

    Args:
        id: Opaque identifier, unique for the lifetime of an editor.
        name: Display name (shown in the legend).
        color: Stroke/fill color drawn from `ENTITY_PALETTE`.
        values: One value per feature, aligned by index.
        visible: Whether the series is drawn. Hidden series are still persisted.
    """

    id: str
    name: str
    color: str
    values: tuple[float, ...] = ()
    visible: bool = True


@dataclass(frozen=True, slots=True)
class CanvasSnapshot:
    """The persisted aggregate exchanged with the record that owns a canvas.

    Args:
        features: Ordered feature names shared by every entity.
        min_y: Lower bound of the shared Y scale.
        max_y: Upper bound of the shared Y scale.
        entities: Ordered entities.
        height: Optional canvas height in pixels.
        y_step: Optional grid step; None means automatic ticks.
    """

    features: tuple[str, ...]
    min_y: float
    max_y: float
    entities: tuple[CanvasEntity, ...]
    height: float | None = None
    y_step: float | None = None


@dataclass(frozen=True, slots=True)
class DragTarget:
    """The data point currently being dragged."""

    entity_id: str
    feature_index: int


@dataclass(frozen=True, slots=True)
class EditorOptions:
    """Host-facing configuration for a canvas editor.

    Args:
        full_screen: Track the viewport width instead of the container width and
            widen the right margin.
        self_display_name: Seed name for the first entity until an inbound
            snapshot has been applied.
        height: Initial canvas height in pixels (clamped to `MAX_CANVAS_HEIGHT`).
        y_step: Initial grid step, or None/"auto" for automatic ticks.
    """

    full_screen: bool = False
    self_display_name: str | None = None
    height: float = DEFAULT_CANVAS_HEIGHT
    y_step: float | str | None = None
