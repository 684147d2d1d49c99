"""Integration tests for plan pages and the canvas JSON endpoint."""

from __future__ import annotations

import json

import pytest
from django.urls import reverse

pytestmark = pytest.mark.integration


@pytest.fixture
def plan(organisation):
    from plans.models import BusinessPlan

    return BusinessPlan.objects.create(organisation=organisation, name="Launch", problem="Too few regulars")


def _post_json(client, url: str, payload: object):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


@pytest.mark.django_db
def test_pages_require_login(client) -> None:
    """Anonymous users are sent to the login page."""

    response = client.get(reverse("plans:plan_list"))
    assert response.status_code == 302
    assert response["Location"].startswith("/accounts/login/")


@pytest.mark.django_db
def test_login_page_renders(client) -> None:
    """The login template is available to the auth views."""

    response = client.get(reverse("login"))
    assert response.status_code == 200
    assert b"Sign in" in response.content


@pytest.mark.django_db
def test_plan_list_shows_selected_organisation(auth_client, plan) -> None:
    """The list shows plans of the auto-selected organisation."""

    response = auth_client.get(reverse("plans:plan_list"))
    assert response.status_code == 200
    assert b"Acme Bakery plans" in response.content
    assert b"Launch" in response.content


@pytest.mark.django_db
def test_plan_list_without_organisation(auth_client) -> None:
    """Users without memberships see an explanation instead of plans."""

    response = auth_client.get(reverse("plans:plan_list"))
    assert response.status_code == 200
    assert b"No organisation" in response.content


@pytest.mark.django_db
def test_plan_create(auth_client, organisation) -> None:
    """Creating a plan stores it in the selected organisation."""

    from plans.models import BusinessPlan

    response = auth_client.post(reverse("plans:plan_create"), {"name": "Expansion", "target_market": "Commuters"})
    plan = BusinessPlan.objects.get(name="Expansion")
    assert response.status_code == 302
    assert response["Location"] == reverse("plans:plan_detail", kwargs={"plan_id": plan.pk})
    assert plan.organisation == organisation
    assert plan.canvas is None


@pytest.mark.django_db
def test_plan_create_rejects_blank_name(auth_client, organisation) -> None:
    """A plan needs a name."""

    from plans.models import BusinessPlan

    response = auth_client.post(reverse("plans:plan_create"), {"name": ""})
    assert response.status_code == 200
    assert BusinessPlan.objects.count() == 0


@pytest.mark.django_db
def test_plan_detail_renders_and_initializes_canvas(auth_client, plan) -> None:
    """The first view of a plan draws and stores the default canvas."""

    response = auth_client.get(reverse("plans:plan_detail", kwargs={"plan_id": plan.pk}))
    plan.refresh_from_db()

    assert response.status_code == 200
    assert b"<svg" in response.content
    assert b"Too few regulars" in response.content
    assert b'id="canvas-snapshot"' in response.content
    assert plan.canvas["entities"][0]["name"] == "Acme Bakery"
    assert plan.canvas["entities"][0]["id"].encode() in response.content


@pytest.mark.django_db
def test_plan_detail_offers_canvas_heights(auth_client, plan) -> None:
    """The height control lists the offered heights and the API accepts only those."""

    response = auth_client.get(reverse("plans:plan_detail", kwargs={"plan_id": plan.pk}))
    assert b'<option value="720" selected>720px</option>' in response.content
    assert b'<option value="480">480px</option>' in response.content

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk})
    assert _post_json(auth_client, url, {"operations": [{"op": "set_height", "height": 500}]}).status_code == 400
    response = _post_json(auth_client, url, {"operations": [{"op": "set_height", "height": 480}]})
    plan.refresh_from_db()

    assert response.json()["height"] == 480.0
    assert plan.canvas["height"] == 480.0


@pytest.mark.django_db
def test_plan_detail_saves_fields(auth_client, plan) -> None:
    """Posting the plan form updates the plan."""

    url = reverse("plans:plan_detail", kwargs={"plan_id": plan.pk})
    response = auth_client.post(url, {"name": "Launch", "vision_3_5_years": "Three shops"})
    plan.refresh_from_db()

    assert response.status_code == 302
    assert plan.vision_3_5_years == "Three shops"


@pytest.mark.django_db
def test_plans_of_other_organisations_are_hidden(auth_client, organisation) -> None:
    """Plans outside the selected organisation return 404."""

    from plans.models import BusinessPlan, Organisation

    other = Organisation.objects.create(name="Competitor Inc")
    foreign = BusinessPlan.objects.create(organisation=other, name="Secret")

    assert auth_client.get(reverse("plans:plan_detail", kwargs={"plan_id": foreign.pk})).status_code == 404
    assert auth_client.get(reverse("plans:canvas_api", kwargs={"plan_id": foreign.pk})).status_code == 404


@pytest.mark.django_db
def test_canvas_api_get(auth_client, plan) -> None:
    """GET returns the settled snapshot and its rendering."""

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk}) + "?width=640"
    data = auth_client.get(url).json()

    assert data["ok"] is True
    assert data["snapshot"]["features"] == ["Price", "Location", "Returning Customers"]
    assert data["snapshot"]["entities"][0]["name"] == "Acme Bakery"
    assert data["width"] == 640.0
    assert data["svg"].startswith("<svg")
    assert data["legend"][0]["name"] == "Acme Bakery"


@pytest.mark.django_db
def test_canvas_api_post_operations(auth_client, plan) -> None:
    """Operations are applied and persisted."""

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk})
    response = _post_json(
        auth_client,
        url,
        {"operations": [{"op": "add_feature", "name": "Speed"}, {"op": "add_entity", "name": "Crumbs"}]},
    )
    plan.refresh_from_db()

    assert response.status_code == 200
    assert response.json()["applied"] == 2
    assert plan.canvas["features"][-1] == "Speed"
    assert [e["name"] for e in plan.canvas["entities"]] == ["Acme Bakery", "Crumbs"]
    assert all(len(e["values"]) == 4 for e in plan.canvas["entities"])


@pytest.mark.django_db
def test_canvas_api_drag_operation(auth_client, plan) -> None:
    """A drag to the plot top stores the range maximum."""

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk})
    entity_id = auth_client.get(url).json()["snapshot"]["entities"][0]["id"]
    response = _post_json(
        auth_client,
        url,
        {"operations": [{"op": "drag", "entity_id": entity_id, "feature_index": 0, "pixel_y": 0}]},
    )
    plan.refresh_from_db()

    assert response.status_code == 200
    assert plan.canvas["entities"][0]["values"][0] == 10.0

@pytest.mark.django_db
def test_saving_plan_text_keeps_canvas_edit_made_after_page_load(auth_client, plan) -> None:
    """A detail form loaded before a drag does not undo the dragged value."""

    detail_url = reverse("plans:plan_detail", kwargs={"plan_id": plan.pk})
    auth_client.get(detail_url)
    plan.refresh_from_db()
    canvas_at_page_load = json.dumps(plan.canvas)
    entity_id = plan.canvas["entities"][0]["id"]

    _post_json(
        auth_client,
        reverse("plans:canvas_api", kwargs={"plan_id": plan.pk}),
        {"operations": [{"op": "drag", "entity_id": entity_id, "feature_index": 0, "pixel_y": 0}]},
    )
    response = auth_client.post(detail_url, {"name": "Launch v2", "canvas": canvas_at_page_load})
    plan.refresh_from_db()

    assert response.status_code == 302
    assert plan.name == "Launch v2"
    assert plan.canvas["entities"][0]["values"][0] == 10.0



@pytest.mark.django_db
def test_canvas_api_reports_errors_and_keeps_valid_changes(auth_client, plan) -> None:
    """Rejected operations give a 400 while valid ones are still saved."""

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk})
    response = _post_json(
        auth_client,
        url,
        {"operations": [{"op": "add_feature", "name": "Speed"}, {"op": "explode"}]},
    )
    plan.refresh_from_db()

    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["errors"] == ["operations[1] has unknown op='explode'."]
    assert plan.canvas["features"][-1] == "Speed"


@pytest.mark.django_db
def test_canvas_api_post_snapshot(auth_client, plan) -> None:
    """A posted snapshot replaces the stored canvas."""

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk})
    snapshot = {
        "features": ["Taste"],
        "minY": 0,
        "maxY": 5,
        "entities": [{"id": "us", "name": "Acme Bakery", "values": [4]}],
    }
    response = _post_json(auth_client, url, {"snapshot": snapshot})
    plan.refresh_from_db()

    assert response.status_code == 200
    assert plan.canvas["features"] == ["Taste"]
    assert plan.canvas["maxY"] == 5.0
    assert plan.canvas["entities"][0]["values"] == [4.0]


@pytest.mark.django_db
@pytest.mark.parametrize("body", [b"not json", b"[1, 2]"])
def test_canvas_api_rejects_bad_bodies(auth_client, plan, body) -> None:
    """Bodies that are not JSON objects are rejected."""

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk})
    response = auth_client.post(url, data=body, content_type="application/json")
    assert response.status_code == 400
    assert response.json()["ok"] is False


@pytest.mark.django_db
def test_canvas_api_rejects_other_methods(auth_client, plan) -> None:
    """Only GET and POST are allowed."""

    url = reverse("plans:canvas_api", kwargs={"plan_id": plan.pk})
    assert auth_client.delete(url).status_code == 405


@pytest.mark.django_db
def test_select_organisation(auth_client, user, organisation) -> None:
    """Switching organisations changes which plans are listed."""

    from plans.models import BusinessPlan, Organisation

    second = Organisation.objects.create(name="Zeta Coffee")
    second.members.add(user)
    BusinessPlan.objects.create(organisation=second, name="Roastery")

    auth_client.get(reverse("plans:plan_list"))
    response = auth_client.post(
        reverse("plans:select_organisation"),
        {"organisation": second.pk, "next": reverse("plans:plan_list")},
    )
    assert response.status_code == 302
    assert response["Location"] == reverse("plans:plan_list")

    listing = auth_client.get(reverse("plans:plan_list"))
    assert b"Zeta Coffee plans" in listing.content
    assert b"Roastery" in listing.content


@pytest.mark.django_db
def test_select_organisation_rejects_non_members(auth_client, organisation) -> None:
    """Users cannot select organisations they do not belong to."""

    from plans.models import Organisation

    other = Organisation.objects.create(name="Other")
    response = auth_client.post(
        reverse("plans:select_organisation"),
        {"organisation": other.pk, "next": "https://evil.example/"},
    )
    assert response.status_code == 302
    assert response["Location"] == reverse("plans:plan_list")
    assert b"Acme Bakery plans" in auth_client.get(reverse("plans:plan_list")).content


@pytest.mark.django_db
def test_select_organisation_requires_post(auth_client, organisation) -> None:
    """Selection only changes through POST."""

    assert auth_client.get(reverse("plans:select_organisation")).status_code == 405
