"""Session-backed selection of the organisation a user is working in.

A user may belong to several organisations. The selected one is remembered in
the session; plans, forms and the canvas endpoint are scoped to it.
"""

from __future__ import annotations

import logging
from typing import Final

from django.db.models import QuerySet
from django.http import HttpRequest

from plans.models import Organisation

logger = logging.getLogger(__name__)

SELECTED_ORGANISATION_SESSION_KEY: Final[str] = "bizplanner_organisation_id"


def organisations_for(request: HttpRequest) -> QuerySet[Organisation]:
    """Return the organisations the authenticated user belongs to, by name then id."""

    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return Organisation.objects.none()
    return Organisation.objects.filter(members=user).order_by("name", "id")


def set_selected_organisation(request: HttpRequest, organisation: Organisation) -> None:
    """Store an organisation as the session's selection.

    Args:
        request: Incoming request whose session will be updated.
        organisation: Organisation the user is a member of.
    """

    request.session[SELECTED_ORGANISATION_SESSION_KEY] = organisation.pk
    request.session.modified = True


def get_selected_organisation(request: HttpRequest) -> Organisation | None:
    """Resolve the selected organisation for a request.

    When the session holds no usable selection and the user belongs to at least
    one organisation, the first one (by name, then id) is selected and stored.
    A valid existing selection is never replaced.

    Args:
        request: Incoming request.

    Returns:
        The selected Organisation, or None when the user belongs to none.
    """

    memberships = organisations_for(request)
    session = getattr(request, "session", None)
    if session is None:
        return memberships.first()

    selected_id = session.get(SELECTED_ORGANISATION_SESSION_KEY)
    if selected_id is not None:
        selected = memberships.filter(pk=selected_id).first()
        if selected is not None:
            return selected
        logger.info("Dropping stale organisation selection id=%s.", selected_id)
        del session[SELECTED_ORGANISATION_SESSION_KEY]

    first = memberships.first()
    if first is not None:
        set_selected_organisation(request, first)
    return first
