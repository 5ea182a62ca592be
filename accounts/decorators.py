"""
API access-control decorators.

Policy:
- Account endpoints need a valid bearer token.
- Ops endpoints (flagged list, metrics, review, export) need a staff token.
- The staff requirement can be switched off for demos.

Settings:
- FRAUDGUARD_API_REQUIRE_STAFF (bool): default True

Both decorators raise taxonomy errors, so they sit inside ``json_api``.
"""
from __future__ import annotations

from functools import wraps
from typing import Any, Callable, TypeVar

from django.conf import settings
from django.http import HttpRequest, HttpResponse

from fraud.errors import AuthenticationError, PermissionDeniedError

F = TypeVar("F", bound=Callable[..., HttpResponse])


def api_login_required(view_func: F) -> F:
    @wraps(view_func)
    def _wrapped(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        if getattr(request, "api_user", None) is None:
            raise AuthenticationError()
        return view_func(request, *args, **kwargs)

    return _wrapped  # type: ignore[return-value]


def api_staff_required(view_func: F) -> F:
    """
    Enforce staff access for ops endpoints.

    Args:
        view_func: Django view callable.

    Returns:
        Wrapped callable enforcing token and staff rules.
    """

    @wraps(view_func)
    def _wrapped(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        if not bool(getattr(settings, "FRAUDGUARD_API_REQUIRE_STAFF", True)):
            return view_func(request, *args, **kwargs)

        user = getattr(request, "api_user", None)
        if user is None:
            raise AuthenticationError()
        if not bool(getattr(user, "is_staff", False)):
            raise PermissionDeniedError()
        return view_func(request, *args, **kwargs)

    return _wrapped  # type: ignore[return-value]
