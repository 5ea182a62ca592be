"""
Shared fixtures.

Every test starts from an empty fraud workflow and an empty cache. Tests that
need deterministic scoring use the ``workflow`` fixture, which pins the clock
to a daytime hour so the unusual-time rule stays quiet.
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from django.core.cache import cache

from fraud import services
from fraud.ledger import Ledger
from fraud.notifications import EmailNotifier
from fraud.otp import OtpStore
from fraud.workflow import ConfirmationWorkflow

NOON_UTC = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls = []

    def notify(self, subject, code, *, user_id, message):
        self.calls.append({"subject": subject, "code": code, "user_id": user_id, "message": message})
        return "d**o@fraudguard.com"


@pytest.fixture(autouse=True)
def _fresh_state():
    services.reset_workflow()
    cache.clear()
    yield
    services.reset_workflow()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOON_UTC)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def workflow(clock, monkeypatch) -> ConfirmationWorkflow:
    """Install a clock-pinned workflow as the service singleton."""
    wf = ConfirmationWorkflow(
        Ledger(),
        OtpStore(clock=clock),
        notifier=EmailNotifier(services.resolve_contact),
        clock=clock,
    )
    monkeypatch.setattr(services, "_WORKFLOW", wf)
    return wf


def _auth_headers(user) -> dict:
    from accounts.tokens import issue_token

    return {"HTTP_AUTHORIZATION": f"Bearer {issue_token(user)}"}


@pytest.fixture
def staff_headers(django_user_model) -> dict:
    user = django_user_model.objects.create_user(
        username="ops@fraudguard.com",
        email="ops@fraudguard.com",
        password="pass1234",
        is_staff=True,
    )
    return _auth_headers(user)


@pytest.fixture
def customer(django_user_model):
    return django_user_model.objects.create_user(
        username="demo@fraudguard.com",
        email="demo@fraudguard.com",
        password="demo1234",
        first_name="Demo User",
    )


@pytest.fixture
def customer_headers(customer) -> dict:
    return _auth_headers(customer)


@pytest.fixture
def post_json(client):
    """POST a JSON body with the Django test client."""

    def _post(url: str, body, **extra):
        return client.post(url, data=json.dumps(body), content_type="application/json", **extra)

    return _post
