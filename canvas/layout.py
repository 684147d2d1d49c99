"""Responsive width tracking for the canvas drawing surface."""

from __future__ import annotations

from collections.abc import Callable

from canvas.dto import DEFAULT_CANVAS_WIDTH
from canvas.scheduling import FrameThrottle, Scheduler


class ResponsiveLayoutObserver:
    """Recompute the drawing width from resize notifications.

    In constrained mode the width follows the hosting container; in full-screen
    mode it follows the viewport and container notifications are ignored.
    Bursts of notifications collapse into one pass per animation frame, and the
    width callback only fires when the measured width actually changes.

    Args:
        scheduler: Scheduler providing animation frames.
        measure_container: Returns the container's content-box width.
        measure_viewport: Returns the viewport width.
        on_width: Called with the new width after a change.
        full_screen: Initial display mode.
        initial_width: Width assumed before the first measurement.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        measure_container: Callable[[], float | None],
        measure_viewport: Callable[[], float | None],
        on_width: Callable[[float], None],
        full_screen: bool = False,
        initial_width: float = DEFAULT_CANVAS_WIDTH,
    ) -> None:
        self._measure_container = measure_container
        self._measure_viewport = measure_viewport
        self._on_width = on_width
        self._full_screen = full_screen
        self._width = initial_width
        self._observing = False
        self._throttle: FrameThrottle[None] = FrameThrottle(scheduler, lambda _: self._apply())

    @property
    def width(self) -> float:
        return self._width

    @property
    def observing(self) -> bool:
        return self._observing

    @property
    def full_screen(self) -> bool:
        return self._full_screen

    def start(self) -> None:
        """Begin observing and schedule the initial measurement."""

        self._observing = True
        self._throttle.push(None)

    def container_resized(self) -> None:
        if self._observing and not self._full_screen:
            self._throttle.push(None)

    def viewport_resized(self) -> None:
        if self._observing:
            self._throttle.push(None)

    def set_full_screen(self, full_screen: bool) -> None:
        if full_screen == self._full_screen:
            return
        self._full_screen = full_screen
        if self._observing:
            self._throttle.push(None)

    def teardown(self) -> None:
        """Stop observing and cancel any pending layout pass."""

        self._observing = False
        self._throttle.cancel()

    def _apply(self) -> None:
        if not self._observing:
            return
        measured = self._measure_viewport() if self._full_screen else self._measure_container()
        if measured is None or measured <= 0 or measured == self._width:
            return
        self._width = measured
        self._on_width(measured)
