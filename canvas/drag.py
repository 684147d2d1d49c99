"""Pointer drag state machine for editing canvas values in place."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from canvas.dto import DragTarget
from canvas.geometry import ChartGeometry
from canvas.scheduling import FrameThrottle, Scheduler

VALUE_DECIMALS = 2


class DragState(str, Enum):
    """States of the drag interaction."""

    idle = "idle"
    dragging = "dragging"


class DragController:
    """Track one pointer drag and commit values at most once per frame.

    Args:
        scheduler: Scheduler providing animation frames.
        geometry: Returns the current chart geometry (used for pointer mapping).
        read_value: Returns the stored value for a target, or None when the
            target no longer exists.
        write_value: Stores a new value for a target.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        geometry: Callable[[], ChartGeometry],
        read_value: Callable[[DragTarget], float | None],
        write_value: Callable[[DragTarget, float], None],
    ) -> None:
        self._geometry = geometry
        self._read_value = read_value
        self._write_value = write_value
        self._target: DragTarget | None = None
        self._throttle: FrameThrottle[tuple[DragTarget, float]] = FrameThrottle(scheduler, self._commit)

    @property
    def state(self) -> DragState:
        return DragState.dragging if self.active else DragState.idle

    @property
    def target(self) -> DragTarget | None:
        return self._target if self.active else None

    @property
    def active(self) -> bool:
        return self.revalidate()

    def revalidate(self) -> bool:
        """Return to idle when the dragged data point no longer exists.

        Returns:
            True while a drag on an existing data point is in progress.
        """

        if self._target is not None and self._read_value(self._target) is None:
            self._throttle.cancel()
            self._target = None
        return self._target is not None

    def pointer_down(self, target: DragTarget) -> bool:
        """Start dragging `target` if it refers to an existing data point."""

        if self._read_value(target) is None:
            return False
        if self._target is not None:
            self._throttle.flush()
        self._target = target
        return True

    def pointer_move(self, pixel_y: float) -> None:
        """Queue the value under the pointer for the next frame."""

        if self._target is None:
            return
        value = round(self._geometry().value_for_y(pixel_y), VALUE_DECIMALS)
        self._throttle.push((self._target, value))

    def pointer_up(self) -> None:
        """End the drag, committing the last computed value."""

        self._throttle.flush()
        self._target = None

    def cancel(self) -> None:
        """Drop pending work without committing (used on teardown)."""

        self._throttle.cancel()
        self._target = None

    def _commit(self, payload: tuple[DragTarget, float]) -> None:
        target, value = payload
        current = self._read_value(target)
        if current is None:
            if self._target == target:
                self._target = None
            return
        if current == value:
            return
        self._write_value(target, value)
