"""Redirect back to where a form was posted from, without open redirects."""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import DisallowedHost
from django.http import HttpRequest, HttpResponseRedirect
from django.shortcuts import redirect
from django.utils.http import url_has_allowed_host_and_scheme


def redirect_back(request: HttpRequest, *, fallback: str) -> HttpResponseRedirect:
    """Redirect to the posted `next` value or the referer, when either is safe.

    Args:
        request: Incoming request; `POST["next"]` wins over the referer header.
        fallback: URL used when neither candidate points at an allowed host.

    Returns:
        An HttpResponseRedirect to a safe URL.
    """

    allowed_hosts = set(settings.ALLOWED_HOSTS)
    try:
        allowed_hosts.add(request.get_host())
    except DisallowedHost:
        pass

    for candidate in (request.POST.get("next"), request.META.get("HTTP_REFERER")):
        target = (candidate or "").strip()
        if target and url_has_allowed_host_and_scheme(
            url=target,
            allowed_hosts=allowed_hosts,
            require_https=request.is_secure(),
        ):
            return redirect(target)
    return redirect(fallback)
