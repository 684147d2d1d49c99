"""Pytest fixtures shared across unit and Django integration tests."""

from __future__ import annotations

from collections.abc import Sequence

import pytest
from django.contrib.auth import get_user_model

from canvas.editor import StrategyCanvasEditor
from canvas.scheduling import ManualScheduler


@pytest.fixture
def user(db):
    """Return a login-capable User."""

    user_model = get_user_model()
    return user_model.objects.create_user(username="alice", password="password")


@pytest.fixture
def organisation(user):
    """Return an Organisation the default test user belongs to."""

    from plans.models import Organisation

    org = Organisation.objects.create(name="Acme Bakery")
    org.members.add(user)
    return org


@pytest.fixture
def auth_client(client, user):
    """Return a Django test client authenticated as the default test user."""

    client.force_login(user)
    return client


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Return a scheduler pumped explicitly by the test."""

    return ManualScheduler()


@pytest.fixture
def commits() -> list:
    """Collect snapshots passed to an editor's commit callback."""

    return []


@pytest.fixture
def editor(scheduler, commits) -> StrategyCanvasEditor:
    """Return an unmounted editor recording commits, with a 900px container."""

    return StrategyCanvasEditor(commit=commits.append, scheduler=scheduler, measure_container=lambda: 900.0)


SPEED_MARKERS = ("unit", "integration")


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Fail collection unless every test has exactly one speed marker.

    `unit` tests are pure and never touch the database; `integration` tests
    exercise Django (ORM, views, commands, templates).
    """

    offenders: list[str] = []
    for item in items:
        found = [name for name in SPEED_MARKERS if item.get_closest_marker(name) is not None]
        if len(found) != 1:
            offenders.append(f"- {item.nodeid} (markers={found or 'none'})")

    if offenders:
        raise pytest.UsageError(
            "Mark each test with exactly one of `@pytest.mark.unit` or `@pytest.mark.integration`.\n"
            "Offending tests:\n" + "\n".join(offenders)
        )
