"""Interactive strategy canvas editor.

`StrategyCanvasEditor` holds the working copy of one canvas and composes the
pieces that keep it consistent:

- the dimension reconciler keeps every value vector aligned with the features,
- the sync controller publishes local changes and accepts inbound snapshots,
- the drag controller turns pointer input into throttled value commits,
- the layout observer tracks the drawing width.

Every public mutation is one logical change: its writes are batched under the
echo guard and the host is notified at most once afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace
from typing import Any

from canvas.drag import DragController
from canvas.dto import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_ENTITY_NAME,
    DEFAULT_FEATURES,
    DEFAULT_MAX_Y,
    DEFAULT_MIN_Y,
    MAX_CANVAS_HEIGHT,
    CanvasEntity,
    CanvasSnapshot,
    DragTarget,
    EditorOptions,
    midpoint,
    palette_color,
)
from canvas.geometry import ChartGeometry, build_geometry
from canvas.layout import ResponsiveLayoutObserver
from canvas.reconcile import reconcile_entities
from canvas.render import RenderedCanvas, hit_test, render_canvas
from canvas.scheduling import ManualScheduler, Scheduler
from canvas.snapshot_codec import new_entity_id, parse_number, parse_positive_number
from canvas.sync import CommitCallback, SyncController

logger = logging.getLogger(__name__)


def parse_y_step(value: object) -> float | None:
    """Interpret a grid step setting; blanks, "auto" and invalid input mean automatic."""

    if isinstance(value, str) and value.strip().casefold() in {"", "auto"}:
        return None
    return parse_positive_number(value)


class StrategyCanvasEditor:
    """Working copy of a strategy canvas bound to an external owner.

    Args:
        commit: Called with the full snapshot after each new local change.
        options: Host configuration (full-screen, self name, height, y step).
        scheduler: Tick/frame scheduler; defaults to a ManualScheduler the host
            pumps explicitly.
        measure_container: Returns the container width (constrained mode).
        measure_viewport: Returns the viewport width (full-screen mode).
        on_render: Called whenever what the canvas draws has changed (state,
            inbound data, or width).
    """

    def __init__(
        self,
        *,
        commit: CommitCallback | None = None,
        options: EditorOptions | None = None,
        scheduler: Scheduler | None = None,
        measure_container: Callable[[], float | None] | None = None,
        measure_viewport: Callable[[], float | None] | None = None,
        on_render: Callable[[], None] | None = None,
    ) -> None:
        self.options = options or EditorOptions()
        self.scheduler: Scheduler = scheduler or ManualScheduler()
        self._issued_ids: set[str] = set()
        self._created_count = 0
        self._self_display_name = self.options.self_display_name
        self._torn_down = False
        self._on_render = on_render

        self._features: tuple[str, ...] = DEFAULT_FEATURES
        self._min_y = DEFAULT_MIN_Y
        self._max_y = DEFAULT_MAX_Y
        self._height = _clamp_height(self.options.height) or float(DEFAULT_CANVAS_HEIGHT)
        self._y_step = parse_y_step(self.options.y_step)
        self._entities: tuple[CanvasEntity, ...] = (
            CanvasEntity(
                id=self._issue_id(),
                name=self._self_display_name or DEFAULT_ENTITY_NAME,
                color=palette_color(self._next_color_index()),
            ),
        )
        self._entities, _ = reconcile_entities(
            self._entities, feature_count=len(self._features), min_y=self._min_y, max_y=self._max_y
        )

        self.sync = SyncController(
            commit=commit,
            scheduler=self.scheduler,
            current=self.snapshot,
            apply=self._apply_inbound,
            drag_active=lambda: self.drag.active,
            id_factory=self._issue_id,
        )
        self.drag = DragController(
            scheduler=self.scheduler,
            geometry=self.geometry,
            read_value=self._read_value,
            write_value=self._write_value,
        )
        self.layout = ResponsiveLayoutObserver(
            scheduler=self.scheduler,
            measure_container=measure_container or (lambda: None),
            measure_viewport=measure_viewport or (lambda: None),
            on_width=self._on_width,
            full_screen=self.options.full_screen,
        )

    # State accessors

    @property
    def features(self) -> tuple[str, ...]:
        return self._features

    @property
    def entities(self) -> tuple[CanvasEntity, ...]:
        return self._entities

    @property
    def min_y(self) -> float:
        return self._min_y

    @property
    def max_y(self) -> float:
        return self._max_y

    @property
    def height(self) -> float:
        return self._height

    @property
    def y_step(self) -> float | None:
        return self._y_step

    @property
    def width(self) -> float:
        return self.layout.width

    @property
    def full_screen(self) -> bool:
        return self.layout.full_screen

    def entity(self, entity_id: str) -> CanvasEntity | None:
        return next((e for e in self._entities if e.id == entity_id), None)

    def snapshot(self) -> CanvasSnapshot:
        """Return the current state as a persistable snapshot."""

        return CanvasSnapshot(
            features=self._features,
            min_y=self._min_y,
            max_y=self._max_y,
            entities=self._entities,
            height=self._height,
            y_step=self._y_step,
        )

    def geometry(self) -> ChartGeometry:
        return build_geometry(
            width=self.layout.width,
            height=self._height,
            full_screen=self.layout.full_screen,
            feature_count=len(self._features),
            min_y=self._min_y,
            max_y=self._max_y,
            y_step=self._y_step,
        )

    def render(self) -> RenderedCanvas:
        return render_canvas(self.geometry(), features=self._features, entities=self._entities)

    # Lifecycle

    def mount(self) -> None:
        """Start observing layout and publish the initial state on the next tick.

        The initial publish is skipped when an inbound snapshot was applied in
        the meantime; the host already holds that data.
        """

        self.layout.start()
        self.scheduler.call_soon(self._publish_initial)

    def teardown(self) -> None:
        """Release observers and pending callbacks; no state is written afterwards."""

        self._torn_down = True
        self.layout.teardown()
        self.drag.cancel()
        self.sync.close()

    # Inbound data and host configuration

    def set_value(self, value: CanvasSnapshot | Mapping[str, Any] | None) -> bool:
        """Accept a snapshot pushed by the owning record (None means no data yet)."""

        if self._torn_down:
            return False
        return self.sync.receive(value)

    def set_self_display_name(self, name: str | None) -> bool:
        """Seed the first entity's name unless external data has been applied."""

        self._self_display_name = name
        if not name or self.sync.has_applied_inbound or not self._entities:
            return False
        first = self._entities[0]
        if first.name == name:
            return False
        with self._change():
            self._entities = (replace(first, name=name),) + self._entities[1:]
        return True

    def set_full_screen(self, full_screen: bool) -> None:
        """Switch display mode; the margins change even when the width does not."""

        if bool(full_screen) == self.layout.full_screen:
            return
        self.layout.set_full_screen(bool(full_screen))
        self._request_render()

    def container_resized(self) -> None:
        self.layout.container_resized()

    def viewport_resized(self) -> None:
        self.layout.viewport_resized()

    # Features

    def add_feature(self, name: str) -> bool:
        name = (name or "").strip()
        if not name:
            return False
        with self._change():
            self._features = self._features + (name,)
            self._reconcile()
        return True

    def rename_feature(self, index: int, name: str) -> bool:
        if not 0 <= index < len(self._features) or self._features[index] == name:
            return False
        with self._change():
            self._features = self._features[:index] + (name,) + self._features[index + 1 :]
        return True

    def delete_feature(self, index: int) -> bool:
        """Remove a feature and the value at its index from every entity."""

        if not 0 <= index < len(self._features):
            return False
        with self._change():
            self._features = self._features[:index] + self._features[index + 1 :]
            self._entities = tuple(
                replace(e, values=e.values[:index] + e.values[index + 1 :]) if index < len(e.values) else e
                for e in self._entities
            )
            self._reconcile()
        return True

    # Entities

    def add_entity(self, name: str) -> CanvasEntity | None:
        name = (name or "").strip()
        if not name:
            return None
        entity = CanvasEntity(
            id=self._issue_id(),
            name=name,
            color=palette_color(self._next_color_index()),
            values=(midpoint(self._min_y, self._max_y),) * len(self._features),
        )
        with self._change():
            self._entities = self._entities + (entity,)
        return entity

    def rename_entity(self, entity_id: str, name: str) -> bool:
        return self._update_entity(entity_id, name=name)

    def set_entity_visible(self, entity_id: str, visible: bool) -> bool:
        return self._update_entity(entity_id, visible=bool(visible))

    def delete_entity(self, entity_id: str) -> bool:
        """Delete an entity; the last remaining entity cannot be deleted."""

        if len(self._entities) <= 1 or self.entity(entity_id) is None:
            return False
        with self._change():
            self._entities = tuple(e for e in self._entities if e.id != entity_id)
        return True

    def set_value_at(self, entity_id: str, feature_index: int, value: float) -> bool:
        """Write one value directly (keyboard entry or host operation)."""

        number = parse_number(value)
        target = DragTarget(entity_id=entity_id, feature_index=feature_index)
        current = self._read_value(target)
        if number is None or current is None or current == number:
            return False
        self._write_value(target, number)
        return True

    # Range and display settings

    def set_range(self, min_y: float, max_y: float) -> bool:
        """Set the Y range; reversed bounds are swapped."""

        low = parse_number(min_y)
        high = parse_number(max_y)
        if low is None or high is None:
            return False
        if low > high:
            low, high = high, low
        if (low, high) == (self._min_y, self._max_y):
            return False
        with self._change():
            self._min_y, self._max_y = low, high
        return True

    def set_height(self, height: float) -> bool:
        clamped = _clamp_height(height)
        if clamped is None or clamped == self._height:
            return False
        with self._change():
            self._height = clamped
        return True

    def set_y_step(self, y_step: float | str | None) -> bool:
        step = parse_y_step(y_step)
        if step == self._y_step:
            return False
        with self._change():
            self._y_step = step
        return True

    # Pointer input

    def pointer_down(self, entity_id: str, feature_index: int) -> bool:
        if self._torn_down:
            return False
        return self.drag.pointer_down(DragTarget(entity_id=entity_id, feature_index=feature_index))

    def pointer_down_at(self, x: float, y: float) -> bool:
        """Start a drag on the data point under a pointer position, if any."""

        target = hit_test(self.geometry(), self._entities, x=x, y=y)
        if target is None or self._torn_down:
            return False
        return self.drag.pointer_down(target)

    def pointer_move(self, pixel_y: float) -> None:
        if not self._torn_down:
            self.drag.pointer_move(pixel_y)

    def pointer_up(self) -> None:
        if not self._torn_down:
            self.drag.pointer_up()

    # Internals

    @contextmanager
    def _change(self) -> Iterator[None]:
        """Batch writes for one logical change, then publish once."""

        with self.sync.suppressed():
            yield
        self.drag.revalidate()
        self._request_render()
        self.sync.publish(self.snapshot())

    def _reconcile(self) -> None:
        self._entities, changed = reconcile_entities(
            self._entities,
            feature_count=len(self._features),
            min_y=self._min_y,
            max_y=self._max_y,
        )
        if changed:
            logger.debug("Reconciled entity values to %d features.", len(self._features))

    def _apply_inbound(self, snapshot: CanvasSnapshot) -> None:
        self._features = snapshot.features
        self._min_y = snapshot.min_y
        self._max_y = snapshot.max_y
        self._entities = snapshot.entities
        if snapshot.height is not None:
            self._height = snapshot.height
        if snapshot.y_step is not None:
            self._y_step = snapshot.y_step
        self._issued_ids.update(e.id for e in self._entities)
        self._created_count = max(self._created_count, len(self._entities))
        self._reconcile()
        self._request_render()

    def _publish_initial(self) -> None:
        if self._torn_down or self.sync.has_applied_inbound:
            return
        self.sync.publish(self.snapshot())

    def _read_value(self, target: DragTarget) -> float | None:
        entity = self.entity(target.entity_id)
        if entity is None or not 0 <= target.feature_index < len(entity.values):
            return None
        return entity.values[target.feature_index]

    def _write_value(self, target: DragTarget, value: float) -> None:
        if self._torn_down:
            return
        index = target.feature_index
        with self._change():
            self._entities = tuple(
                replace(e, values=e.values[:index] + (float(value),) + e.values[index + 1 :])
                if e.id == target.entity_id
                else e
                for e in self._entities
            )

    def _update_entity(self, entity_id: str, **changes: Any) -> bool:
        entity = self.entity(entity_id)
        if entity is None or all(getattr(entity, k) == v for k, v in changes.items()):
            return False
        with self._change():
            self._entities = tuple(replace(e, **changes) if e.id == entity_id else e for e in self._entities)
        return True

    def _on_width(self, width: float) -> None:
        if self._torn_down:
            return
        logger.debug("Canvas width changed to %s.", width)
        self._request_render()

    def _request_render(self) -> None:
        if self._on_render is not None and not self._torn_down:
            self._on_render()

    def _issue_id(self) -> str:
        entity_id = new_entity_id()
        while entity_id in self._issued_ids:
            entity_id = new_entity_id()
        self._issued_ids.add(entity_id)
        return entity_id

    def _next_color_index(self) -> int:
        index = self._created_count
        self._created_count += 1
        return index


def _clamp_height(value: object) -> float | None:
    """Return a positive height clamped to the maximum, or None when unusable."""

    height = parse_positive_number(value)
    if height is None:
        return None
    return min(height, float(MAX_CANVAS_HEIGHT))
