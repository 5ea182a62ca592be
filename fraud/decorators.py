"""
JSON API view decorators.

json_api:
- any FraudGuardError raised by the view
  becomes ``{"success": false, "error": kind, "message": ...}`` with the
  error's status code.
- anything else is logged with its traceback and answered with a generic
  InternalError, so internal details never reach the client.
- the view is CSRF exempt; the API authenticates with bearer tokens.
"""
from __future__ import annotations

import json
import logging
from functools import wraps
from typing import Any, Callable, Dict, TypeVar

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from fraud.errors import FraudGuardError, InternalError, ValidationError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., HttpResponse])


def error_response(error: FraudGuardError) -> JsonResponse:
    return JsonResponse(error.to_payload(), status=error.status_code)


def json_api(view_func: F) -> F:
    """
    Wrap a JSON view with the fraud API error contract.

    Args:
        view_func: Django view callable returning an HttpResponse.

    Returns:
        Wrapped, CSRF-exempt callable.
    """

    @wraps(view_func)
    def _wrapped(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        try:
            return view_func(request, *args, **kwargs)
        except FraudGuardError as exc:
            return error_response(exc)
        except Exception:
            logger.exception("Unhandled error in %s", view_func.__name__)
            return error_response(InternalError())

    return csrf_exempt(_wrapped)  # type: ignore[return-value]


def read_json(request: HttpRequest) -> Dict[str, Any]:
    """
    Decode a JSON object request body.

    Raises:
        ValidationError: Body is not valid JSON or not an object.
    """
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise ValidationError("Request body must be valid JSON") from None
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def bind_form(form_class, data: Dict[str, Any]):
    """
    Bind ``data`` to ``form_class`` and return the cleaned data.

    Raises:
        ValidationError: With the form's field errors attached.
    """
    form = form_class(data=data)
    if not form.is_valid():
        errors = {field: [str(m) for m in messages] for field, messages in form.errors.items()}
        raise ValidationError("Invalid input", errors=errors)
    return form.cleaned_data
