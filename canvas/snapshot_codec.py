"""Snapshot encoding/decoding helpers for CanvasSnapshot payloads."""

from __future__ import annotations

import json
import math
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from canvas.dto import (
    DEFAULT_MAX_Y,
    DEFAULT_MIN_Y,
    MAX_CANVAS_HEIGHT,
    CanvasEntity,
    CanvasSnapshot,
    midpoint,
    palette_color,
)


def new_entity_id() -> str:
    """Return a fresh opaque entity identifier."""

    return uuid.uuid4().hex[:8]


def encode_canvas_snapshot(snapshot: CanvasSnapshot) -> dict[str, Any]:
    """Encode a CanvasSnapshot into a JSON-serializable dictionary.

    Args:
        snapshot: CanvasSnapshot to encode.

    Returns:
        Dict payload safe for JSONField storage. Keys are always emitted in the
        same order so the payload doubles as a comparison key source.
    """

    payload: dict[str, Any] = {
        "features": list(snapshot.features),
        "minY": snapshot.min_y,
        "maxY": snapshot.max_y,
        "entities": [
            {
                "id": entity.id,
                "name": entity.name,
                "color": entity.color,
                "values": list(entity.values),
                "visible": entity.visible,
            }
            for entity in snapshot.entities
        ],
    }
    if snapshot.height is not None:
        payload["height"] = snapshot.height
    if snapshot.y_step is not None:
        payload["yStep"] = snapshot.y_step
    return payload


def comparison_key(snapshot: CanvasSnapshot) -> str:
    """Return a stable serialization used to detect behaviorally equal snapshots.

    Two snapshots with equal keys render identically and persist identically.
    """

    return json.dumps(encode_canvas_snapshot(snapshot), separators=(",", ":"), ensure_ascii=False)


def decode_canvas_snapshot(
    payload: Mapping[str, Any],
    *,
    previous: CanvasSnapshot | None = None,
    id_factory: Callable[[], str] = new_entity_id,
) -> CanvasSnapshot:
    """Decode a CanvasSnapshot from an untrusted payload.

    Each field is defaulted independently; decoding never raises for malformed
    input. Fields that are invalid or missing fall back to `previous` where the
    field is optional (height, y step, entities).

    Args:
        payload: Stored or inbound mapping (see `encode_canvas_snapshot`).
        previous: Snapshot whose optional fields are retained when the payload
            does not provide a usable value.
        id_factory: Callable used for entities missing an id.

    Returns:
        CanvasSnapshot instance.
    """

    features_raw = payload.get("features")
    features = tuple(str(x) for x in features_raw) if isinstance(features_raw, list) else ()

    min_y = parse_number(payload.get("minY"))
    max_y = parse_number(payload.get("maxY"))
    min_y = DEFAULT_MIN_Y if min_y is None else min_y
    max_y = DEFAULT_MAX_Y if max_y is None else max_y
    if min_y > max_y:
        min_y, max_y = max_y, min_y

    height = parse_positive_number(payload.get("height"))
    if height is None:
        height = previous.height if previous is not None else None
    else:
        height = min(height, float(MAX_CANVAS_HEIGHT))

    y_step = parse_positive_number(payload.get("yStep"))
    if y_step is None:
        y_step = previous.y_step if previous is not None else None

    entities = _decode_entities(
        payload.get("entities"),
        fill=midpoint(min_y, max_y),
        id_factory=id_factory,
    )
    if not entities:
        entities = previous.entities if previous is not None else ()

    return CanvasSnapshot(
        features=features,
        min_y=min_y,
        max_y=max_y,
        entities=entities,
        height=height,
        y_step=y_step,
    )


def _decode_entities(
    raw: object,
    *,
    fill: float,
    id_factory: Callable[[], str],
) -> tuple[CanvasEntity, ...]:
    """Decode entity payloads, dropping entries that are not objects."""

    if not isinstance(raw, list):
        return ()

    decoded: list[CanvasEntity] = []
    seen_ids: set[str] = set()
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        entity_id = _parse_id(item.get("id"))
        while entity_id is None or entity_id in seen_ids:
            entity_id = id_factory()
        seen_ids.add(entity_id)

        name = item.get("name")
        color = item.get("color")
        values_raw = item.get("values")
        values: tuple[float, ...] = ()
        if isinstance(values_raw, list):
            parsed = (parse_number(v) for v in values_raw)
            values = tuple(fill if v is None else v for v in parsed)
        decoded.append(
            CanvasEntity(
                id=entity_id,
                name="" if name is None else str(name),
                color=color if isinstance(color, str) and color else palette_color(len(decoded)),
                values=values,
                visible=item.get("visible") is not False,
            )
        )
    return tuple(decoded)


def _parse_id(value: object) -> str | None:
    """Best-effort entity id parsing for snapshot payloads."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int)):
        text = str(value).strip()
        return text or None
    return None


def parse_number(value: object) -> float | None:
    """Best-effort finite float parsing for snapshot payloads."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_positive_number(value: object) -> float | None:
    """Best-effort parsing for strictly positive numbers."""

    number = parse_number(value)
    if number is None or number <= 0:
        return None
    return number
