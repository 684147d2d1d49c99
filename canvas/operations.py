"""Host operations for editing a canvas through a JSON interface.

Hosts without a live pointer (the JSON endpoint, management commands) drive the
editor with a list of operation objects, e.g.::

    [{"op": "add_feature", "name": "Quality"},
     {"op": "drag", "entity_id": "a1b2c3d4", "feature_index": 1, "pixel_y": 24}]

Invalid operations are reported as errors; valid ones in the same batch still
apply, in order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from canvas.dto import CANVAS_HEIGHT_CHOICES
from canvas.editor import StrategyCanvasEditor, parse_y_step
from canvas.snapshot_codec import parse_number


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of applying a batch of operations."""

    applied: int = 0
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


class OperationError(ValueError):
    """Raised by an operation handler for arguments it cannot use."""


def apply_operations(editor: StrategyCanvasEditor, operations: Iterable[object]) -> OperationResult:
    """Apply host operations to an editor.

    Args:
        editor: Editor to mutate.
        operations: Operation mappings, each with an `op` key.

    Returns:
        OperationResult counting operations that changed state and listing
        errors for rejected ones.
    """

    applied = 0
    errors: list[str] = []
    for idx, operation in enumerate(operations):
        if not isinstance(operation, Mapping):
            errors.append(f"operations[{idx}] must be an object.")
            continue
        name = operation.get("op")
        handler = _HANDLERS.get(str(name))
        if handler is None:
            errors.append(f"operations[{idx}] has unknown op={name!r}.")
            continue
        try:
            changed = handler(editor, operation)
        except OperationError as exc:
            errors.append(f"operations[{idx}] op={name!r}: {exc}")
            continue
        if changed:
            applied += 1
    return OperationResult(applied=applied, errors=tuple(errors))


def _require_str(operation: Mapping[str, Any], key: str) -> str:
    value = operation.get(key)
    if not isinstance(value, str):
        raise OperationError(f"{key} must be a string.")
    return value


def _require_int(operation: Mapping[str, Any], key: str) -> int:
    value = operation.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise OperationError(f"{key} must be an integer.")
    return value


def _require_number(operation: Mapping[str, Any], key: str) -> float:
    value = parse_number(operation.get(key))
    if value is None:
        raise OperationError(f"{key} must be a number.")
    return value


def _add_feature(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    if not editor.add_feature(_require_str(operation, "name")):
        raise OperationError("name must be non-empty.")
    return True


def _rename_feature(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    index = _require_int(operation, "index")
    if not 0 <= index < len(editor.features):
        raise OperationError(f"index {index} is out of range.")
    return editor.rename_feature(index, _require_str(operation, "name"))


def _delete_feature(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    index = _require_int(operation, "index")
    if not editor.delete_feature(index):
        raise OperationError(f"index {index} is out of range.")
    return True


def _add_entity(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    if editor.add_entity(_require_str(operation, "name")) is None:
        raise OperationError("name must be non-empty.")
    return True


def _existing_entity_id(editor: StrategyCanvasEditor, operation: Mapping[str, Any], key: str = "id") -> str:
    entity_id = _require_str(operation, key)
    if editor.entity(entity_id) is None:
        raise OperationError(f"unknown entity {entity_id!r}.")
    return entity_id


def _rename_entity(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    return editor.rename_entity(_existing_entity_id(editor, operation), _require_str(operation, "name"))


def _delete_entity(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    entity_id = _existing_entity_id(editor, operation)
    if not editor.delete_entity(entity_id):
        raise OperationError("the last entity cannot be deleted.")
    return True


def _set_visibility(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    visible = operation.get("visible")
    if not isinstance(visible, bool):
        raise OperationError("visible must be a boolean.")
    return editor.set_entity_visible(_existing_entity_id(editor, operation), visible)


def _set_range(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    return editor.set_range(_require_number(operation, "min_y"), _require_number(operation, "max_y"))


def _set_height(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    height = _require_number(operation, "height")
    if height not in CANVAS_HEIGHT_CHOICES:
        choices = ", ".join(str(choice) for choice in CANVAS_HEIGHT_CHOICES)
        raise OperationError(f"height must be one of {choices}.")
    return editor.set_height(height)


def _set_y_step(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    raw = operation.get("y_step")
    if raw is not None and parse_y_step(raw) is None and not _is_auto(raw):
        raise OperationError("y_step must be a positive number, blank or \"auto\".")
    return editor.set_y_step(raw)


def _is_auto(value: object) -> bool:
    return isinstance(value, str) and value.strip().casefold() in {"", "auto"}


def _set_value(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    entity_id = _existing_entity_id(editor, operation, "entity_id")
    index = _require_int(operation, "feature_index")
    if not 0 <= index < len(editor.features):
        raise OperationError(f"feature_index {index} is out of range.")
    return editor.set_value_at(entity_id, index, _require_number(operation, "value"))


def _drag(editor: StrategyCanvasEditor, operation: Mapping[str, Any]) -> bool:
    entity_id = _existing_entity_id(editor, operation, "entity_id")
    index = _require_int(operation, "feature_index")
    pixel_y = _require_number(operation, "pixel_y")
    if not editor.pointer_down(entity_id, index):
        raise OperationError(f"feature_index {index} is out of range.")
    before = editor.entity(entity_id)
    editor.pointer_move(pixel_y)
    editor.pointer_up()
    return editor.entity(entity_id) != before


_HANDLERS: dict[str, Callable[[StrategyCanvasEditor, Mapping[str, Any]], bool]] = {
    "add_feature": _add_feature,
    "rename_feature": _rename_feature,
    "delete_feature": _delete_feature,
    "add_entity": _add_entity,
    "rename_entity": _rename_entity,
    "delete_entity": _delete_entity,
    "set_visibility": _set_visibility,
    "set_range": _set_range,
    "set_height": _set_height,
    "set_y_step": _set_y_step,
    "set_value": _set_value,
    "drag": _drag,
}
