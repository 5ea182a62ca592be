"""
tests/test_api_permissions.py

Tests for the API access-control decorators.

These tests are isolated from URL routing and the token middleware: they set
``request.api_user`` by hand on RequestFactory requests and run the decorated
view through ``json_api`` so errors come back as responses.
"""
from __future__ import annotations

import json
import types

import pytest
from django.http import HttpRequest, HttpResponse
from django.test import RequestFactory, override_settings

from accounts.decorators import api_login_required, api_staff_required
from fraud.decorators import json_api


@pytest.fixture
def rf() -> RequestFactory:
    return RequestFactory()


def _dummy_view(request: HttpRequest, *args, **kwargs) -> HttpResponse:
    return HttpResponse("OK", status=200)


staff_view = json_api(api_staff_required(_dummy_view))
login_view = json_api(api_login_required(_dummy_view))


def _request(rf: RequestFactory, user) -> HttpRequest:
    request = rf.get("/api/fraud/metrics")
    request.api_user = user
    return request


def test_login_required_rejects_anonymous(rf: RequestFactory) -> None:
    resp = login_view(_request(rf, None))
    assert resp.status_code == 401
    assert json.loads(resp.content)["error"] == "AuthenticationError"


def test_login_required_allows_any_user(rf: RequestFactory) -> None:
    user = types.SimpleNamespace(is_staff=False)
    assert login_view(_request(rf, user)).status_code == 200


@override_settings(FRAUDGUARD_API_REQUIRE_STAFF=True)
def test_staff_required_rejects_anonymous(rf: RequestFactory) -> None:
    assert staff_view(_request(rf, None)).status_code == 401


@override_settings(FRAUDGUARD_API_REQUIRE_STAFF=True)
def test_staff_required_forbids_non_staff(rf: RequestFactory) -> None:
    resp = staff_view(_request(rf, types.SimpleNamespace(is_staff=False)))
    assert resp.status_code == 403
    assert json.loads(resp.content) == {
        "success": False,
        "error": "PermissionDenied",
        "message": "Staff access required.",
    }


@override_settings(FRAUDGUARD_API_REQUIRE_STAFF=True)
def test_staff_required_allows_staff(rf: RequestFactory) -> None:
    resp = staff_view(_request(rf, types.SimpleNamespace(is_staff=True)))
    assert resp.status_code == 200
    assert resp.content == b"OK"


@override_settings(FRAUDGUARD_API_REQUIRE_STAFF=False)
def test_staff_requirement_can_be_disabled(rf: RequestFactory) -> None:
    assert staff_view(_request(rf, None)).status_code == 200
