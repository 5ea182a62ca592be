"""
Fraud services.

Intent:
- one process-wide workflow (ledger + OTP store + notifier) built from settings
- keep view logic thin: views call into here and only shape responses
- tests swap or reset the singleton instead of patching module globals
"""
from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings

from fraud.ledger import DEFAULT_FLAGGED_THRESHOLD, Ledger
from fraud.notifications import EmailNotifier
from fraud.otp import (
    DEFAULT_DIGITS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_VALIDITY_SECONDS,
    OtpStore,
)
from fraud.workflow import DEFAULT_FREQUENCY_WINDOW_SECONDS, ConfirmationWorkflow

logger = logging.getLogger(__name__)

_WORKFLOW: Optional[ConfirmationWorkflow] = None


def _setting(name: str, default):
    return getattr(settings, name, default)


def resolve_contact(user_id: str) -> Optional[str]:
    """
    Look up the email on file for an opaque user id.

    The id is matched against the user's primary key first and then the
    username, so both ``"3"`` and ``"demo@fraudguard.com"`` resolve.
    """
    from django.contrib.auth import get_user_model

    user_model = get_user_model()
    user = None
    if str(user_id).isdigit():
        user = user_model.objects.filter(pk=int(user_id)).first()
    if user is None:
        user = user_model.objects.filter(username=user_id).first()
    return user.email if user and user.email else None


def build_otp_store() -> OtpStore:
    return OtpStore(
        digits=int(_setting("FRAUDGUARD_OTP_DIGITS", DEFAULT_DIGITS)),
        validity_seconds=int(_setting("FRAUDGUARD_OTP_VALIDITY_SECONDS", DEFAULT_VALIDITY_SECONDS)),
        sweep_interval_seconds=int(
            _setting("FRAUDGUARD_OTP_SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL_SECONDS)
        ),
    )


def build_workflow() -> ConfirmationWorkflow:
    return ConfirmationWorkflow(
        Ledger(),
        build_otp_store(),
        notifier=EmailNotifier(resolve_contact),
        frequency_window_seconds=int(
            _setting("FRAUDGUARD_FREQUENCY_WINDOW_SECONDS", DEFAULT_FREQUENCY_WINDOW_SECONDS)
        ),
    )


def get_workflow() -> ConfirmationWorkflow:
    global _WORKFLOW
    if _WORKFLOW is None:
        _WORKFLOW = build_workflow()
        logger.debug("Built fraud workflow singleton")
    return _WORKFLOW


def reset_workflow() -> None:
    """Drop the singleton; the next get_workflow() starts from empty stores."""
    global _WORKFLOW
    _WORKFLOW = None


def flagged_threshold() -> float:
    return float(_setting("FRAUDGUARD_FLAGGED_THRESHOLD", DEFAULT_FLAGGED_THRESHOLD))
