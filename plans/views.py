"""Views for business plans and their strategy canvases."""

from __future__ import annotations

import json
import logging

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import Http404, HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_http_methods, require_POST

from canvas.dto import CANVAS_HEIGHT_CHOICES
from canvas.snapshot_codec import encode_canvas_snapshot
from plans.forms import BusinessPlanForm, OrganisationSelectForm
from plans.models import BusinessPlan, Organisation
from plans.org_selection import get_selected_organisation, organisations_for, set_selected_organisation
from plans.redirects import redirect_back
from plans.services import CanvasRequestResult, apply_canvas_request, render_plan_canvas

logger = logging.getLogger(__name__)


def _require_organisation(request: HttpRequest) -> Organisation:
    organisation = get_selected_organisation(request)
    if organisation is None:
        raise Http404("You are not a member of any organisation.")
    return organisation


def _plan_for(request: HttpRequest, plan_id: int) -> BusinessPlan:
    organisation = _require_organisation(request)
    return get_object_or_404(
        BusinessPlan.objects.select_related("organisation"),
        pk=plan_id,
        organisation=organisation,
    )


def _canvas_json(result: CanvasRequestResult, *, status: int = 200) -> JsonResponse:
    return JsonResponse(
        {
            "ok": result.is_valid,
            "applied": result.applied,
            "errors": list(result.errors),
            "snapshot": encode_canvas_snapshot(result.snapshot),
            "svg": result.rendered.svg,
            "legend": result.rendered.legend,
            "width": result.rendered.width,
            "height": result.rendered.height,
        },
        status=status,
    )


@login_required
def plan_list(request: HttpRequest) -> HttpResponse:
    """List the selected organisation's plans."""

    organisation = get_selected_organisation(request)
    plans = BusinessPlan.objects.filter(organisation=organisation) if organisation else BusinessPlan.objects.none()
    return render(request, "plans/plan_list.html", {"plans": plans, "organisation": organisation})


@login_required
def plan_create(request: HttpRequest) -> HttpResponse:
    """Create a plan in the selected organisation."""

    organisation = _require_organisation(request)
    form = BusinessPlanForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        plan = form.save(commit=False)
        plan.organisation = organisation
        plan.save()
        logger.info("Created plan id=%s for organisation id=%s.", plan.pk, organisation.pk)
        messages.success(request, f"Created “{plan.name}”.")
        return redirect("plans:plan_detail", plan_id=plan.pk)
    return render(request, "plans/plan_form.html", {"form": form, "organisation": organisation})


@login_required
def plan_detail(request: HttpRequest, plan_id: int) -> HttpResponse:
    """Edit a plan and show its server-rendered strategy canvas.

    The first view of a plan stores the default canvas, so the entity ids on
    the page are valid targets for canvas API operations.
    """

    plan = _plan_for(request, plan_id)
    form = BusinessPlanForm(request.POST or None, instance=plan)
    if request.method == "POST":
        if form.is_valid():
            form.save()
            messages.success(request, "Plan saved.")
            return redirect("plans:plan_detail", plan_id=plan.pk)
        messages.error(request, "Please correct the errors below.")

    width = request.GET.get("width") or settings.CANVAS_DEFAULT_WIDTH
    canvas = render_plan_canvas(plan, width=width, persist=True)
    return render(
        request,
        "plans/plan_detail.html",
        {
            "plan": plan,
            "form": form,
            "canvas": canvas.rendered,
            "canvas_snapshot": encode_canvas_snapshot(canvas.snapshot),
            "canvas_api_url": reverse("plans:canvas_api", kwargs={"plan_id": plan.pk}),
            "canvas_height_choices": CANVAS_HEIGHT_CHOICES,
        },
    )


@login_required
@require_http_methods(["GET", "POST"])
def canvas_api(request: HttpRequest, plan_id: int) -> JsonResponse:
    """Read or edit a plan's canvas as JSON.

    GET returns the settled snapshot and its SVG rendering, storing the
    defaults first for a plan without a canvas. POST accepts
    `{"operations": [...]}` and/or `{"snapshot": {...}}`; accepted changes are
    persisted and rejected operations are listed under `errors`.
    """

    plan = _plan_for(request, plan_id)
    width = request.GET.get("width")
    if request.method == "GET":
        return _canvas_json(render_plan_canvas(plan, width=width, persist=True))

    try:
        payload = json.loads(request.body or b"{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return JsonResponse({"ok": False, "errors": ["Request body must be JSON."]}, status=400)
    if not isinstance(payload, dict):
        return JsonResponse({"ok": False, "errors": ["Request body must be a JSON object."]}, status=400)

    result = apply_canvas_request(plan, payload, width=width)
    if not result.is_valid:
        logger.info("Canvas request for plan id=%s rejected %d item(s).", plan.pk, len(result.errors))
    return _canvas_json(result, status=200 if result.is_valid else 400)


@login_required
@require_POST
def select_organisation(request: HttpRequest) -> HttpResponse:
    """Switch the session's selected organisation."""

    form = OrganisationSelectForm(request.POST, organisations=organisations_for(request))
    if form.is_valid():
        organisation = form.cleaned_data["organisation"]
        set_selected_organisation(request, organisation)
        messages.success(request, f"Now working in {organisation.name}.")
    else:
        messages.error(request, "Choose one of your organisations.")
    return redirect_back(request, fallback=reverse("plans:plan_list"))
