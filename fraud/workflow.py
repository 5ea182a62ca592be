"""
Confirmation workflow for submitted transactions.

Flow:
1. Score the submission against the user's recent window from the ledger.
2. Low-risk submissions are recorded as approved.
3. Risky submissions get an OTP challenge and are recorded as pending_otp;
   the code is handed to the notifier.
4. A later verify with the right code moves pending_otp -> approved.

Analysts can also review a transaction (approve, block, investigate); those
moves go through the same guarded status transitions as verification.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from django.utils import timezone

from fraud import scoring
from fraud.errors import FraudGuardError, InternalError, TransitionError, ValidationError
from fraud.ledger import Ledger, Transaction, TransactionStatus
from fraud.notifications import Notifier
from fraud.otp import OtpChallenge, OtpStore

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY_WINDOW_SECONDS = 3600

REVIEW_ACTIONS = {
    "approve": TransactionStatus.APPROVED,
    "block": TransactionStatus.BLOCKED,
    "investigate": TransactionStatus.INVESTIGATING,
}


@dataclass(frozen=True)
class Submission:
    transaction: Transaction
    assessment: scoring.RiskAssessment
    challenge: Optional[OtpChallenge] = None
    masked_contact: Optional[str] = None

    @property
    def requires_otp(self) -> bool:
        return self.assessment.requires_otp


class ConfirmationWorkflow:
    def __init__(
        self,
        ledger: Ledger,
        otp_store: OtpStore,
        *,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = timezone.now,
        frequency_window_seconds: int = DEFAULT_FREQUENCY_WINDOW_SECONDS,
    ) -> None:
        self.ledger = ledger
        self.otp_store = otp_store
        self.notifier = notifier
        self._clock = clock
        self.frequency_window_seconds = int(frequency_window_seconds)
        self._lock = threading.RLock()

    def submit(self, attributes: Mapping[str, Any]) -> Submission:
        """
        Score, record and (when risky) challenge a new transaction.

        Raises:
            ValidationError: Malformed attributes; nothing is recorded.
            InternalError: Unexpected scoring or storage fault; nothing is recorded.
        """
        user_id = str(attributes.get("user_id") or "").strip()
        if not user_id:
            raise ValidationError("userId is required", errors={"userId": ["This field is required."]})

        challenge: Optional[OtpChallenge] = None
        try:
            with self._lock:
                now = self._clock()
                recent = self.ledger.recent_for_user(user_id, now, self.frequency_window_seconds)
                assessment = scoring.assess(attributes, recent, now=now)

                status = (
                    TransactionStatus.PENDING_OTP if assessment.requires_otp else TransactionStatus.APPROVED
                )
                transaction = Transaction(
                    id=self.ledger.next_id(now),
                    amount=float(attributes["amount"]),
                    recipient=str(attributes["recipient"]).strip(),
                    user_id=user_id,
                    location=_location(attributes.get("location")),
                    created_at=now,
                    anomaly_score=assessment.score,
                    flags=assessment.flags,
                    risk_level=assessment.risk_level,
                    status=status,
                )

                if status is TransactionStatus.PENDING_OTP:
                    challenge = self.otp_store.issue(transaction.id)
                try:
                    self.ledger.append(transaction)
                except Exception:
                    if challenge is not None:
                        self.otp_store.revoke(transaction.id)
                    raise
        except FraudGuardError:
            raise
        except Exception as exc:
            logger.exception("Error analyzing transaction for user %s", user_id)
            raise InternalError("Error analyzing transaction") from exc

        logger.info(
            "Transaction %s for user %s scored %s (%s): %s",
            transaction.id,
            user_id,
            assessment.score,
            assessment.risk_level,
            status.value,
        )

        masked_contact = None
        if challenge is not None and self.notifier is not None:
            masked_contact = self.notifier.notify(
                transaction.id,
                challenge.code,
                user_id=user_id,
                message=_alert_message(transaction),
            )

        return Submission(
            transaction=transaction,
            assessment=assessment,
            challenge=challenge,
            masked_contact=masked_contact,
        )

    def verify(self, transaction_id: str, code: str) -> Transaction:
        """
        Confirm a pending transaction with its OTP.

        Errors from the OTP store propagate unchanged and leave the status alone.
        """
        with self._lock:
            self.ledger.get(transaction_id)
            try:
                verified_at = self.otp_store.verify(transaction_id, code)
            except FraudGuardError as exc:
                logger.warning("OTP verification failed for %s: %s", transaction_id, exc.kind)
                raise
            updated = self.ledger.set_status(
                transaction_id,
                TransactionStatus.APPROVED,
                otp_verified_at=verified_at,
            )
        logger.info("Transaction %s approved by OTP", transaction_id)
        return updated

    def review(self, transaction_id: str, action: str) -> Transaction:
        """
        Apply an analyst decision (approve, block, investigate).

        A pending_otp transaction can be blocked or put under investigation,
        which withdraws its challenge; only a verified OTP approves it.
        """
        try:
            target = REVIEW_ACTIONS[str(action).strip().lower()]
        except KeyError:
            raise ValidationError(
                f"Unknown action: {action}",
                errors={"action": [f"Choose one of: {', '.join(sorted(REVIEW_ACTIONS))}."]},
            ) from None

        with self._lock:
            current = self.ledger.get(transaction_id)
            if current.status is TransactionStatus.PENDING_OTP and target is TransactionStatus.APPROVED:
                raise TransitionError("Pending transactions are approved by OTP verification only")
            updated = self.ledger.set_status(transaction_id, target)
            if current.status is TransactionStatus.PENDING_OTP:
                self.otp_store.revoke(transaction_id)
        logger.info(
            "Transaction %s moved from %s to %s by review",
            transaction_id,
            current.status.value,
            target.value,
        )
        return updated


def _location(value: Any) -> Optional[dict]:
    if not value:
        return None
    return {"lat": float(value["lat"]), "lng": float(value["lng"])}


def _alert_message(transaction: Transaction) -> str:
    return (
        f"A suspicious transaction of {transaction.amount:,.2f} to {transaction.recipient} "
        f"has been detected on your account.\n\n"
        f"Anomaly Score: {transaction.anomaly_score}%\n"
        f"Risk Flags: {', '.join(transaction.flags)}\n\n"
        "If this transaction was initiated by you, please verify it with the code below. "
        "If you did not initiate this transaction, please contact our security team immediately."
    )
