"""
Out-of-band delivery of OTP codes.

Delivery goes through Django's configured email backend (console in
development, locmem under test). Sending is fire-and-forget: a failed send is
logged and never unwinds the transaction or the challenge that triggered it.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

ContactResolver = Callable[[str], Optional[str]]


class Notifier(Protocol):
    def notify(self, subject: str, code: str, *, user_id: str, message: str) -> Optional[str]:
        """Deliver ``code``; return the masked contact it went to, if any."""
        raise NotImplementedError


def mask_contact(email: str) -> str:
    """
    Mask an email for display: first and last character of the local part.

    Example: ``demo@fraudguard.com`` -> ``d**o@fraudguard.com``
    """
    if not email or "@" not in email:
        return ""
    local, domain = email.split("@", 1)
    if len(local) <= 2:
        return f"{local[:1]}{'*' * max(0, len(local) - 1)}@{domain}"
    return f"{local[0]}{'*' * (len(local) - 2)}{local[-1]}@{domain}"


class EmailNotifier:
    def __init__(self, resolve_contact: ContactResolver) -> None:
        self._resolve_contact = resolve_contact

    def notify(self, subject: str, code: str, *, user_id: str, message: str) -> Optional[str]:
        try:
            contact = self._resolve_contact(user_id)
        except Exception:
            logger.exception("Contact lookup failed for user %s", user_id)
            return None

        if not contact:
            logger.warning("No contact on file for user %s; OTP for %s not delivered", user_id, subject)
            return None

        try:
            send_mail(
                "FraudGuard verification code",
                f"{message}\n\nVerification code: {code}\n",
                getattr(settings, "FRAUDGUARD_NOTIFY_FROM_EMAIL", "security@fraudguard.com"),
                [contact],
            )
        except Exception:
            logger.exception("OTP delivery failed for %s", subject)
            return None
        return mask_contact(contact)
