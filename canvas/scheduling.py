"""Cooperative scheduling primitives used by the canvas editor.

The editor is single-threaded. It only ever defers work in two ways:
- to the next scheduling tick (after the current synchronous update batch),
- to the next animation frame (throttled drag commits, layout passes).

`Scheduler` abstracts both so the editor can run inside an asyncio loop or be
pumped explicitly by a host (server-side rendering, tests).
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

Callback = Callable[[], None]
P = TypeVar("P")

FRAME_INTERVAL_SECONDS = 1 / 60


class Scheduler(Protocol):
    """Minimal scheduling surface required by the editor."""

    def call_soon(self, callback: Callback) -> None:
        """Run `callback` on the next scheduling tick."""

    def request_frame(self, callback: Callback) -> object:
        """Run `callback` on the next animation frame and return a cancel handle."""

    def cancel_frame(self, handle: object) -> None:
        """Cancel a frame callback previously returned by `request_frame`."""


class ManualScheduler:
    """A deterministic scheduler pumped explicitly by its owner.

    Tick callbacks run in FIFO order. Frame callbacks requested while a frame
    is running are deferred to the following frame.
    """

    def __init__(self) -> None:
        self._ticks: deque[Callback] = deque()
        self._frames: dict[int, Callback] = {}
        self._next_handle = 1

    def call_soon(self, callback: Callback) -> None:
        self._ticks.append(callback)

    def request_frame(self, callback: Callback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._frames[handle] = callback
        return handle

    def cancel_frame(self, handle: object) -> None:
        if isinstance(handle, int):
            self._frames.pop(handle, None)

    @property
    def pending_ticks(self) -> int:
        return len(self._ticks)

    @property
    def pending_frames(self) -> int:
        return len(self._frames)

    def run_ticks(self) -> int:
        """Run queued tick callbacks (including ones they enqueue).

        Returns:
            Number of callbacks executed.
        """

        ran = 0
        while self._ticks:
            self._ticks.popleft()()
            ran += 1
        return ran

    def run_frame(self) -> int:
        """Run one animation frame, then drain the tick queue.

        Returns:
            Number of frame callbacks executed.
        """

        frames = list(self._frames.values())
        self._frames.clear()
        for callback in frames:
            callback()
        self.run_ticks()
        return len(frames)

    def flush(self, *, max_rounds: int = 100) -> None:
        """Run ticks and frames until nothing is pending.

        Raises:
            RuntimeError: When callbacks keep rescheduling past `max_rounds`.
        """

        for _ in range(max_rounds):
            self.run_ticks()
            if not self._frames:
                return
            self.run_frame()
        raise RuntimeError(f"Scheduler did not settle after {max_rounds} rounds.")


class AsyncioScheduler:
    """Scheduler bound to an asyncio event loop.

    Frames are approximated with `call_later` at a fixed frame interval.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        *,
        frame_interval: float = FRAME_INTERVAL_SECONDS,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._frame_interval = frame_interval

    def call_soon(self, callback: Callback) -> None:
        self._loop.call_soon(callback)

    def request_frame(self, callback: Callback) -> asyncio.TimerHandle:
        return self._loop.call_later(self._frame_interval, callback)

    def cancel_frame(self, handle: object) -> None:
        if isinstance(handle, asyncio.Handle):
            handle.cancel()


class FrameThrottle(Generic[P]):
    """Single-slot debounce that delivers at most one payload per frame.

    Pushing while a frame is pending replaces the payload without scheduling
    another callback. The throttle is owned by one component instance.
    """

    def __init__(self, scheduler: Scheduler, deliver: Callable[[P], None]) -> None:
        self._scheduler = scheduler
        self._deliver = deliver
        self._handle: object | None = None
        self._payload: P | None = None
        self._has_payload = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, payload: P) -> None:
        self._payload = payload
        self._has_payload = True
        if self._handle is None:
            self._handle = self._scheduler.request_frame(self._fire)

    def flush(self) -> None:
        """Deliver a pending payload now and cancel its frame callback."""

        if self._handle is not None:
            self._scheduler.cancel_frame(self._handle)
        self._fire()

    def cancel(self) -> None:
        """Drop any pending payload without delivering it."""

        if self._handle is not None:
            self._scheduler.cancel_frame(self._handle)
        self._handle = None
        self._payload = None
        self._has_payload = False

    def _fire(self) -> None:
        self._handle = None
        if not self._has_payload:
            return
        payload = self._payload
        self._payload = None
        self._has_payload = False
        self._deliver(payload)  # type: ignore[arg-type]
