"""Pure data-space <-> pixel-space mapping for the strategy canvas.

Everything here is deterministic and free of side effects so the mapping can be
tested without a rendering surface.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

AUTO_TICK_INTERVALS = 5
_TICK_EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class ChartMargins:
    """Pixel margins around the plot area."""

    top: float = 24
    right: float = 24
    bottom: float = 64
    left: float = 48


def margins_for(*, full_screen: bool) -> ChartMargins:
    """Return margins for the display mode (full-screen widens the right margin)."""

    return ChartMargins(right=64 if full_screen else 24)


@dataclass(frozen=True, slots=True)
class ChartGeometry:
    """Viewport dimensions plus the value range of a canvas.

    Args:
        width: Total drawing width in pixels.
        height: Total drawing height in pixels.
        margins: Margins around the plot area.
        feature_count: Number of features placed along the X axis.
        min_y: Lower bound of the Y scale.
        max_y: Upper bound of the Y scale.
        y_step: Optional grid step; None (or non-positive) selects automatic ticks.
    """

    width: float
    height: float
    margins: ChartMargins
    feature_count: int
    min_y: float
    max_y: float
    y_step: float | None = None

    @property
    def chart_left(self) -> float:
        return self.margins.left

    @property
    def chart_top(self) -> float:
        return self.margins.top

    @property
    def chart_width(self) -> float:
        return self.width - self.margins.left - self.margins.right

    @property
    def chart_height(self) -> float:
        return self.height - self.margins.top - self.margins.bottom

    @property
    def chart_bottom(self) -> float:
        return self.chart_top + self.chart_height

    def x_for_index(self, index: int) -> float:
        """Return the X pixel of the feature column at `index`."""

        if self.feature_count == 1:
            return self.chart_left + self.chart_width / 2
        return self.chart_left + (index / (self.feature_count - 1)) * self.chart_width

    def y_for_value(self, value: float) -> float:
        """Return the Y pixel for a data value (larger values sit higher)."""

        t = (value - self.min_y) / (self.max_y - self.min_y or 1)
        return self.chart_top + (1 - t) * self.chart_height

    def value_for_y(self, pixel_y: float) -> float:
        """Return the data value under a Y pixel.

        The pixel is clamped to the plot area first, so pointer positions above
        or below the chart map to `max_y` and `min_y` respectively.
        """

        clamped = max(self.chart_top, min(self.chart_bottom, pixel_y))
        t = 1 - (clamped - self.chart_top) / (self.chart_height or 1)
        return self.min_y + t * (self.max_y - self.min_y)

    def grid_ticks(self) -> list[float]:
        """Return the Y values of horizontal grid lines."""

        return grid_ticks(self.min_y, self.max_y, self.y_step)


def grid_ticks(min_y: float, max_y: float, y_step: float | None = None) -> list[float]:
    """Return grid tick values for a range.

    Args:
        min_y: Lower bound of the range.
        max_y: Upper bound of the range.
        y_step: Optional explicit step.

    Returns:
        With a positive step: every multiple of the step inside the range,
        rounded to 2 decimals, with both bounds always present. Otherwise six
        evenly spaced ticks spanning the range.
    """

    if y_step is not None and y_step > 0:
        ticks: list[float] = []
        start = math.ceil(min_y / y_step) * y_step
        i = 0
        while start + i * y_step <= max_y + _TICK_EPSILON:
            ticks.append(round(start + i * y_step, 2))
            i += 1
        lower = round(min_y, 2)
        upper = round(max_y, 2)
        if lower not in ticks:
            ticks.insert(0, lower)
        if upper not in ticks:
            ticks.append(upper)
        return ticks

    step = (max_y - min_y) / AUTO_TICK_INTERVALS
    return [round(min_y + i * step, 2) for i in range(AUTO_TICK_INTERVALS + 1)]


def build_geometry(
    *,
    width: float,
    height: float,
    full_screen: bool,
    feature_count: int,
    min_y: float,
    max_y: float,
    y_step: float | None = None,
) -> ChartGeometry:
    """Build a ChartGeometry from editor display settings."""

    return ChartGeometry(
        width=width,
        height=height,
        margins=margins_for(full_screen=full_screen),
        feature_count=feature_count,
        min_y=min_y,
        max_y=max_y,
        y_step=y_step,
    )
