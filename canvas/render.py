"""SVG rendering for strategy canvases.

The renderer is a pure function of geometry and canvas data: grid lines with
tick labels, one column per feature, and one polyline plus draggable points per
visible entity. Points carry `data-entity-id` / `data-feature-index`
attributes so a client can map pointer events back to a `DragTarget`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from html import escape
from typing import TypedDict

from canvas.dto import CanvasEntity, DragTarget
from canvas.geometry import ChartGeometry

POINT_RADIUS = 6
EMPTY_CANVAS_MESSAGE = "Add features to start plotting the canvas"

_GRID_STROKE = "#1f2937"
_COLUMN_STROKE = "#111827"
_TICK_FILL = "#9ca3af"
_LABEL_FILL = "#e5e7eb"


class LegendItem(TypedDict):
    """A legend entry for one entity."""

    id: str
    name: str
    color: str
    visible: bool


@dataclass(frozen=True, slots=True)
class RenderedCanvas:
    """A rendered canvas surface plus its legend."""

    svg: str
    legend: list[LegendItem]
    width: float
    height: float


def render_canvas(
    geometry: ChartGeometry,
    *,
    features: Sequence[str],
    entities: Sequence[CanvasEntity],
) -> RenderedCanvas:
    """Render a canvas to SVG markup.

    Args:
        geometry: Geometry describing the drawing surface and value range.
        features: Ordered feature names.
        entities: Entities to draw; hidden ones are omitted from the drawing but
            kept in the legend.

    Returns:
        RenderedCanvas containing the SVG document and legend entries.
    """

    width = _num(geometry.width)
    height = _num(geometry.height)
    parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" class="strategy-canvas">'
    ]

    if not features:
        parts.append(
            f'<text x="{_num(geometry.width / 2)}" y="{_num(geometry.height / 2)}" text-anchor="middle" '
            f'dominant-baseline="middle" fill="{_TICK_FILL}" font-size="14">{escape(EMPTY_CANVAS_MESSAGE)}</text>'
        )

    left = _num(geometry.chart_left)
    right = _num(geometry.chart_left + geometry.chart_width)
    for tick in geometry.grid_ticks():
        y = _num(geometry.y_for_value(tick))
        parts.append(
            f'<g class="grid"><line x1="{left}" x2="{right}" y1="{y}" y2="{y}" stroke="{_GRID_STROKE}"/>'
            f'<text x="{_num(geometry.chart_left - 8)}" y="{y}" fill="{_TICK_FILL}" font-size="10" '
            f'text-anchor="end" dominant-baseline="middle">{_num(tick)}</text></g>'
        )

    top = _num(geometry.chart_top)
    bottom = _num(geometry.chart_bottom)
    label_y = _num(geometry.chart_bottom + 16)
    for index, feature in enumerate(features):
        x = _num(geometry.x_for_index(index))
        parts.append(
            f'<g class="feature"><line x1="{x}" x2="{x}" y1="{top}" y2="{bottom}" stroke="{_COLUMN_STROKE}"/>'
            f'<text x="{x}" y="{label_y}" fill="{_LABEL_FILL}" font-size="13" '
            f'text-anchor="{_label_anchor(index, len(features))}">{escape(feature)}</text></g>'
        )

    for entity in entities:
        if not entity.visible:
            continue
        color = escape(entity.color)
        points = [(geometry.x_for_index(i), geometry.y_for_value(v)) for i, v in enumerate(entity.values)]
        polyline = " ".join(f"{_num(x)},{_num(y)}" for x, y in points)
        parts.append(f'<g class="entity" data-entity-id="{escape(entity.id)}">')
        parts.append(f'<polyline points="{polyline}" fill="none" stroke="{color}" stroke-width="2"/>')
        for index, (x, y) in enumerate(points):
            parts.append(
                f'<circle cx="{_num(x)}" cy="{_num(y)}" r="{POINT_RADIUS}" fill="{color}" '
                f'data-entity-id="{escape(entity.id)}" data-feature-index="{index}" style="cursor: grab"/>'
            )
        parts.append("</g>")

    parts.append("</svg>")
    legend: list[LegendItem] = [
        {"id": e.id, "name": e.name, "color": e.color, "visible": e.visible} for e in entities
    ]
    return RenderedCanvas(svg="".join(parts), legend=legend, width=geometry.width, height=geometry.height)


def hit_test(
    geometry: ChartGeometry,
    entities: Sequence[CanvasEntity],
    *,
    x: float,
    y: float,
    radius: float = POINT_RADIUS,
) -> DragTarget | None:
    """Return the topmost visible data point within `radius` of a pointer position.

    Later entities are drawn on top of earlier ones, so they win ties.
    """

    limit = radius * radius
    for entity in reversed(entities):
        if not entity.visible:
            continue
        for index in range(len(entity.values) - 1, -1, -1):
            dx = geometry.x_for_index(index) - x
            dy = geometry.y_for_value(entity.values[index]) - y
            if dx * dx + dy * dy <= limit:
                return DragTarget(entity_id=entity.id, feature_index=index)
    return None


def _label_anchor(index: int, count: int) -> str:
    if index == 0:
        return "start"
    if index == count - 1:
        return "end"
    return "middle"


def _num(value: float) -> str:
    """Format a coordinate compactly (integers without a trailing .0)."""

    rounded = round(float(value), 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return str(rounded)
