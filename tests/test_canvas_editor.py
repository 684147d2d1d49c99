"""Unit tests for the strategy canvas editor."""

from __future__ import annotations

import random

import pytest

from canvas.drag import DragState
from canvas.dto import ENTITY_PALETTE, EditorOptions
from canvas.editor import StrategyCanvasEditor, parse_y_step

pytestmark = pytest.mark.unit


def _aligned(editor: StrategyCanvasEditor) -> bool:
    return all(len(e.values) == len(editor.features) for e in editor.entities)


def test_defaults(editor) -> None:
    """A fresh editor shows three features and one entity at the midpoint."""

    assert editor.features == ("Price", "Location", "Returning Customers")
    assert (editor.min_y, editor.max_y) == (0.0, 10.0)
    assert editor.height == 720.0
    assert editor.y_step is None
    (entity,) = editor.entities
    assert entity.name == "Us"
    assert entity.color == ENTITY_PALETTE[0]
    assert entity.values == (5.0, 5.0, 5.0)


def test_options_seed_name_height_and_step(scheduler) -> None:
    """Host options are applied to the initial state."""

    editor = StrategyCanvasEditor(
        scheduler=scheduler,
        options=EditorOptions(self_display_name="Acme", height=5000, y_step="2"),
    )
    assert editor.entities[0].name == "Acme"
    assert editor.height == 1080.0
    assert editor.y_step == 2.0


def test_add_feature_pads_values(editor) -> None:
    """Adding a feature pads every entity with the midpoint."""

    editor.set_value(
        {
            "features": ["Price", "Location"],
            "minY": 0,
            "maxY": 10,
            "entities": [{"id": "us", "name": "Us", "values": [5, 5]}],
        }
    )
    assert editor.add_feature("Quality") is True
    assert editor.entity("us").values == (5.0, 5.0, 5.0)


def test_delete_feature_keeps_remaining_order(editor) -> None:
    """Deleting a feature removes its value and keeps the rest in order."""

    entity_id = editor.entities[0].id
    editor.set_value_at(entity_id, 0, 1.0)
    editor.set_value_at(entity_id, 1, 2.0)
    editor.set_value_at(entity_id, 2, 3.0)

    assert editor.delete_feature(0) is True
    assert editor.features == ("Location", "Returning Customers")
    assert editor.entity(entity_id).values == (2.0, 3.0)


def test_blank_and_invalid_edits_are_rejected(editor, commits) -> None:
    """Edits that would change nothing do not publish."""

    assert editor.add_feature("   ") is False
    assert editor.add_entity("") is None
    assert editor.rename_feature(9, "Nope") is False
    assert editor.delete_feature(-1) is False
    assert editor.set_value_at("missing", 0, 1.0) is False
    assert commits == []


def test_each_change_publishes_once(editor, commits) -> None:
    """One logical change produces one commit."""

    editor.add_feature("Speed")
    editor.delete_feature(0)
    assert len(commits) == 2
    assert commits[-1].features == ("Location", "Returning Customers", "Speed")


def test_colors_follow_creation_order(editor) -> None:
    """Entity colors come from a creation counter, not the current count."""

    second = editor.add_entity("Rival")
    assert second.color == ENTITY_PALETTE[1]
    editor.delete_entity(second.id)
    third = editor.add_entity("Other")
    assert third.color == ENTITY_PALETTE[2]


def test_entity_ids_are_unique(editor) -> None:
    """Ids are never reused within an editor."""

    created = [editor.add_entity(f"Rival {i}") for i in range(20)]
    ids = [e.id for e in editor.entities]
    assert len(set(ids)) == len(ids) == 21
    editor.delete_entity(created[0].id)
    assert created[0].id not in {editor.add_entity("Again").id}


def test_last_entity_cannot_be_deleted(editor) -> None:
    """At least one entity always remains."""

    assert editor.delete_entity(editor.entities[0].id) is False
    assert len(editor.entities) == 1


def test_rename_and_visibility(editor) -> None:
    """Entities can be renamed and hidden."""

    entity_id = editor.entities[0].id
    assert editor.rename_entity(entity_id, "Acme") is True
    assert editor.set_entity_visible(entity_id, False) is True
    assert editor.set_entity_visible(entity_id, False) is False
    entity = editor.entity(entity_id)
    assert (entity.name, entity.visible) == ("Acme", False)


def test_set_range_swaps_reversed_bounds(editor) -> None:
    """A reversed range is normalized."""

    assert editor.set_range(20, -5) is True
    assert (editor.min_y, editor.max_y) == (-5.0, 20.0)
    assert editor.set_range(-5, 20) is False


def test_height_and_step_settings(editor) -> None:
    """Height is clamped and the grid step accepts "auto"."""

    assert editor.set_height(5000) is True
    assert editor.height == 1080.0
    assert editor.set_height(-1) is False
    assert editor.set_y_step(2) is True
    assert editor.y_step == 2.0
    assert editor.set_y_step("auto") is True
    assert editor.y_step is None


def test_parse_y_step() -> None:
    """Blank, auto and invalid steps mean automatic ticks."""

    assert parse_y_step("") is None
    assert parse_y_step(" Auto ") is None
    assert parse_y_step(None) is None
    assert parse_y_step("-2") is None
    assert parse_y_step("0.5") == 0.5


def test_self_name_applies_until_inbound_data(editor, scheduler) -> None:
    """The first entity follows the host's name only before owner data arrives."""

    assert editor.set_self_display_name("Acme") is True
    assert editor.entities[0].name == "Acme"

    editor.set_value({"features": ["A"], "entities": [{"id": "x", "name": "Stored", "values": [1]}]})
    scheduler.flush()
    assert editor.set_self_display_name("Renamed") is False
    assert editor.entities[0].name == "Stored"


def test_drag_to_plot_edges(editor, scheduler) -> None:
    """Dragging a point to the plot top or bottom yields the range bounds."""

    entity_id = editor.entities[0].id
    geometry = editor.geometry()

    editor.pointer_down(entity_id, 1)
    editor.pointer_move(geometry.chart_top)
    editor.pointer_up()
    assert editor.entity(entity_id).values[1] == 10.0

    editor.pointer_down(entity_id, 1)
    editor.pointer_move(geometry.chart_top + geometry.chart_height)
    scheduler.run_frame()
    editor.pointer_up()
    assert editor.entity(entity_id).values[1] == 0.0


def test_pointer_down_at_hits_points(editor) -> None:
    """Pointer positions near a data point start a drag on it."""

    geometry = editor.geometry()
    x = geometry.x_for_index(2)
    y = geometry.y_for_value(5.0)
    assert editor.pointer_down_at(x + 3, y - 3) is True
    assert editor.drag.target.feature_index == 2
    editor.pointer_up()
    assert editor.pointer_down_at(x, y + 100) is False


def test_width_follows_container(scheduler) -> None:
    """Mounting measures the container and re-renders on change."""

    renders: list[float] = []
    editor = StrategyCanvasEditor(
        scheduler=scheduler,
        measure_container=lambda: 600.0,
        on_render=lambda: renders.append(editor.width),
    )
    editor.mount()
    scheduler.flush()
    assert editor.width == 600.0
    assert renders == [600.0]
    assert editor.geometry().width == 600.0


def test_on_render_called_for_changes(scheduler) -> None:
    """The render hook fires for each state change."""

    calls: list[int] = []
    editor = StrategyCanvasEditor(scheduler=scheduler, on_render=lambda: calls.append(1))
    editor.add_feature("Speed")
    editor.set_range(0, 5)
    assert len(calls) == 2


def test_teardown_discards_pending_drag(editor, scheduler, commits) -> None:
    """Pending drag commits are dropped and later input is ignored."""

    entity_id = editor.entities[0].id
    editor.pointer_down(entity_id, 0)
    editor.pointer_move(24)
    editor.teardown()
    scheduler.flush()

    assert commits == []
    assert editor.entity(entity_id).values[0] == 5.0
    assert editor.pointer_down(entity_id, 0) is False


def test_deleting_dragged_entity_ends_drag_and_accepts_inbound(editor, scheduler) -> None:
    """Once the dragged entity is gone, owner data is applied again."""

    rival = editor.add_entity("Rival")
    assert editor.pointer_down(rival.id, 0) is True
    assert editor.delete_entity(rival.id) is True
    assert editor.drag.state is DragState.idle

    assert editor.set_value({"features": ["A"], "entities": [{"id": "x", "name": "Stored", "values": [1]}]}) is True
    scheduler.flush()
    assert [e.name for e in editor.entities] == ["Stored"]


def test_deleting_dragged_feature_ends_drag(editor) -> None:
    """Deleting the last feature while dragging its point returns to idle."""

    last = len(editor.features) - 1
    assert editor.pointer_down(editor.entities[0].id, last) is True
    editor.delete_feature(last)
    assert editor.drag.state is DragState.idle


def test_full_screen_switch_rerenders_at_same_width(scheduler) -> None:
    """Switching display mode re-renders even when the measured width is unchanged."""

    renders: list[bool] = []
    editor = StrategyCanvasEditor(
        scheduler=scheduler,
        measure_container=lambda: 800.0,
        measure_viewport=lambda: 800.0,
        on_render=lambda: renders.append(editor.full_screen),
    )
    editor.mount()
    scheduler.flush()
    assert renders == [False]

    editor.set_full_screen(True)
    scheduler.flush()
    assert renders == [False, True]
    assert editor.geometry().margins.right == 64

    editor.set_full_screen(True)
    assert renders == [False, True]


def test_values_stay_aligned_across_random_edits(editor, scheduler) -> None:
    """No sequence of edits leaves a value vector misaligned."""

    rng = random.Random(1234)
    for step in range(300):
        action = rng.choice(["add_f", "del_f", "add_e", "del_e", "drag", "range", "inbound"])
        entities = editor.entities
        if action == "add_f":
            editor.add_feature(f"F{step}")
        elif action == "del_f" and editor.features:
            editor.delete_feature(rng.randrange(len(editor.features)))
        elif action == "add_e":
            editor.add_entity(f"E{step}")
        elif action == "del_e":
            editor.delete_entity(rng.choice(entities).id)
        elif action == "drag" and editor.features:
            editor.pointer_down(rng.choice(entities).id, rng.randrange(len(editor.features)))
            editor.pointer_move(rng.uniform(0, 720))
            editor.pointer_up()
        elif action == "range":
            editor.set_range(rng.uniform(-10, 0), rng.uniform(0, 10))
        elif action == "inbound":
            editor.set_value(
                {
                    "features": [f"I{i}" for i in range(rng.randrange(4))],
                    "entities": [{"id": f"in{step}", "values": [1.0] * rng.randrange(5)}],
                }
            )
        if rng.random() < 0.3:
            scheduler.flush()
        assert _aligned(editor), action
