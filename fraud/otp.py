"""
One-time passcode issuing and verification.

Challenges are keyed by subject: a transaction id, or ``user:<pk>`` for the
standalone account OTP. Issuing for a subject replaces whatever challenge it
had, so there is never more than one live code per subject.

State per subject:
    NONE -> ACTIVE -> CONSUMED (removed) | EXPIRED (kept until swept)
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from django.utils import timezone

from fraud.errors import ExpiredError, MismatchError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_DIGITS = 6
DEFAULT_VALIDITY_SECONDS = 120
DEFAULT_SWEEP_INTERVAL_SECONDS = 60

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class OtpChallenge:
    subject: str
    code: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def expires_in(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


class OtpStore:
    """In-memory challenge store guarded by a single lock."""

    def __init__(
        self,
        *,
        digits: int = DEFAULT_DIGITS,
        validity_seconds: int = DEFAULT_VALIDITY_SECONDS,
        sweep_interval_seconds: int = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Clock = timezone.now,
    ) -> None:
        if digits < 1:
            raise ValueError("digits must be at least 1")
        self.digits = int(digits)
        self.validity = timedelta(seconds=int(validity_seconds))
        self.sweep_interval = timedelta(seconds=max(0, int(sweep_interval_seconds)))
        self._clock = clock
        self._challenges: Dict[str, OtpChallenge] = {}
        self._last_sweep: Optional[datetime] = None
        self._lock = threading.RLock()

    def _generate_code(self) -> str:
        return str(secrets.randbelow(10 ** self.digits)).zfill(self.digits)

    def issue(self, subject: str) -> OtpChallenge:
        """
        Create a fresh challenge for ``subject``, superseding any earlier one.
        """
        now = self._clock()
        challenge = OtpChallenge(
            subject=subject,
            code=self._generate_code(),
            issued_at=now,
            expires_at=now + self.validity,
        )
        with self._lock:
            self._maybe_sweep(now)
            superseded = subject in self._challenges
            self._challenges[subject] = challenge
        logger.info(
            "Issued OTP for %s (expires %s%s)",
            subject,
            challenge.expires_at.isoformat(),
            ", superseding previous code" if superseded else "",
        )
        return challenge

    def verify(self, subject: str, code: str) -> datetime:
        """
        Check ``code`` against the subject's challenge and consume it.

        Returns:
            The verification time.

        Raises:
            NotFoundError: No challenge exists for the subject.
            ExpiredError: The challenge is past its expiry.
            MismatchError: The code does not match.
        """
        submitted = str(code or "").strip()
        with self._lock:
            now = self._clock()
            challenge = self._challenges.get(subject)
            if challenge is None:
                raise NotFoundError("Invalid transaction ID or OTP expired")
            if challenge.is_expired(now):
                raise ExpiredError()
            if not hmac.compare_digest(submitted.encode("utf-8"), challenge.code.encode("utf-8")):
                raise MismatchError()
            del self._challenges[subject]
        return now

    def revoke(self, subject: str) -> bool:
        with self._lock:
            return self._challenges.pop(subject, None) is not None

    def active(self, subject: str) -> Optional[OtpChallenge]:
        """Return the live challenge for ``subject``, if any."""
        with self._lock:
            challenge = self._challenges.get(subject)
            if challenge is None or challenge.is_expired(self._clock()):
                return None
            return challenge

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Drop every challenge whose expiry is at or before ``now``.

        Returns:
            Number of challenges removed.
        """
        with self._lock:
            return self._sweep(now or self._clock())

    def _maybe_sweep(self, now: datetime) -> None:
        if self._last_sweep is not None and now - self._last_sweep < self.sweep_interval:
            return
        removed = self._sweep(now)
        if removed:
            logger.debug("Swept %s expired OTP challenges", removed)

    def _sweep(self, now: datetime) -> int:
        stale = [s for s, c in self._challenges.items() if c.expires_at <= now]
        for subject in stale:
            del self._challenges[subject]
        self._last_sweep = now
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._challenges)

    def __contains__(self, subject: object) -> bool:
        with self._lock:
            return subject in self._challenges
