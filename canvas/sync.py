"""Bidirectional synchronization between a canvas editor and its owning record.

The editor owns a working copy of the canvas; the record (via its host) owns
the persisted snapshot. Two paths connect them:

- Outbound: every local change is published through a commit callback, unless
  it is a duplicate of the last published snapshot or the echo guard is held.
- Inbound: snapshots pushed by the host replace local state, unless a drag is
  in progress or the snapshot is behaviorally identical to local state. The
  echo guard is held while applying and released on the next scheduling tick,
  so applying external data never bounces straight back out as a local edit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from enum import Enum
from typing import Any

from canvas.dto import CanvasSnapshot
from canvas.scheduling import Scheduler
from canvas.snapshot_codec import comparison_key, decode_canvas_snapshot, encode_canvas_snapshot, new_entity_id

logger = logging.getLogger(__name__)

CommitCallback = Callable[[CanvasSnapshot], object]


class GuardState(str, Enum):
    """States of the echo guard."""

    idle = "idle"
    applying_external = "applying_external"


class EchoGuardToken:
    """A held claim on an EchoGuard; releasing twice is a no-op."""

    def __init__(self, guard: EchoGuard) -> None:
        self._guard = guard
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self._guard._holders -= 1


class EchoGuard:
    """Re-entrancy guard gating outbound emission.

    The guard is `applying_external` while at least one token is held.
    """

    def __init__(self) -> None:
        self._holders = 0

    @property
    def state(self) -> GuardState:
        return GuardState.applying_external if self._holders else GuardState.idle

    @property
    def active(self) -> bool:
        return self._holders > 0

    def acquire(self) -> EchoGuardToken:
        self._holders += 1
        return EchoGuardToken(self)

    @contextmanager
    def hold(self) -> Iterator[EchoGuardToken]:
        token = self.acquire()
        try:
            yield token
        finally:
            token.release()


class SyncController:
    """Outbound/inbound snapshot protocol for one editor instance.

    Args:
        commit: Host callback receiving published snapshots (fire-and-forget).
        scheduler: Scheduler used to release the echo guard on the next tick.
        current: Returns the editor's current snapshot.
        apply: Replaces the editor's state with an inbound snapshot.
        drag_active: Returns True while a pointer drag is in progress.
        id_factory: Id generator for inbound entities missing an id.
    """

    def __init__(
        self,
        *,
        commit: CommitCallback | None,
        scheduler: Scheduler,
        current: Callable[[], CanvasSnapshot],
        apply: Callable[[CanvasSnapshot], None],
        drag_active: Callable[[], bool],
        id_factory: Callable[[], str] = new_entity_id,
    ) -> None:
        self._commit = commit
        self._scheduler = scheduler
        self._current = current
        self._apply = apply
        self._drag_active = drag_active
        self._id_factory = id_factory
        self._last_emitted_key = ""
        self._closed = False
        self.guard = EchoGuard()
        self.has_applied_inbound = False

    @property
    def last_emitted_key(self) -> str:
        return self._last_emitted_key

    def suppressed(self):
        """Context manager holding the echo guard for a burst of writes."""

        return self.guard.hold()

    def publish(self, snapshot: CanvasSnapshot) -> bool:
        """Emit a local change to the host when it is new and not suppressed.

        Returns:
            True when the commit callback was invoked.
        """

        if self._closed or self._commit is None:
            return False
        if self.guard.active:
            logger.debug("Outbound canvas change suppressed while applying external data.")
            return False
        key = comparison_key(snapshot)
        if key == self._last_emitted_key:
            return False
        self._last_emitted_key = key
        try:
            self._commit(snapshot)
        except Exception:
            logger.exception("Canvas commit callback failed.")
        return True

    def receive(self, value: CanvasSnapshot | Mapping[str, Any] | None) -> bool:
        """Accept an inbound snapshot from the host.

        Args:
            value: A CanvasSnapshot, a stored payload mapping, or None when the
                host has no data yet.

        Returns:
            True when local state was replaced.
        """

        if value is None or self._closed:
            return False
        if self._drag_active():
            logger.debug("Inbound canvas snapshot ignored during an active drag.")
            return False

        if isinstance(value, CanvasSnapshot):
            payload: Mapping[str, Any] = encode_canvas_snapshot(value)
        elif isinstance(value, Mapping):
            payload = value
        else:
            logger.debug("Inbound canvas snapshot ignored: unsupported type %s.", type(value).__name__)
            return False

        current = self._current()
        incoming = decode_canvas_snapshot(payload, previous=current, id_factory=self._id_factory)
        incoming_key = comparison_key(incoming)
        if incoming_key == comparison_key(current):
            logger.debug("Inbound canvas snapshot matches local state; skipped.")
            return False

        token = self.guard.acquire()
        try:
            self._apply(incoming)
        except Exception:
            token.release()
            raise
        self.has_applied_inbound = True
        self._scheduler.call_soon(lambda: self._release(token, incoming_key))
        return True

    def close(self) -> None:
        """Stop publishing; later releases only drop their guard tokens."""

        self._closed = True

    def _release(self, token: EchoGuardToken, applied_key: str) -> None:
        token.release()
        if self._closed:
            return
        # The host already holds the applied snapshot; only publish if
        # reconciliation (or a suppressed local edit) changed it since.
        self._last_emitted_key = applied_key
        self.publish(self._current())
