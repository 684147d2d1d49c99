"""Template context processors for bizplanner."""

from __future__ import annotations

from django.http import HttpRequest

from plans.org_selection import get_selected_organisation, organisations_for


def selected_organisation(request: HttpRequest) -> dict[str, object]:
    """Expose the selected organisation and the user's memberships to templates.

    Args:
        request: Current request object.

    Returns:
        Context dict with `selected_organisation` and `organisations`.
    """

    if not getattr(getattr(request, "user", None), "is_authenticated", False):
        return {"selected_organisation": None, "organisations": ()}
    return {
        "selected_organisation": get_selected_organisation(request),
        "organisations": list(organisations_for(request)),
    }
