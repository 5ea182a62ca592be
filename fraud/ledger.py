"""
In-memory transaction ledger.

Records are immutable; a status change swaps in a modified copy under the
ledger lock, so readers always see whole records. Nothing is ever removed.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from fraud.errors import NotFoundError, TransitionError, ValidationError

DEFAULT_FLAGGED_THRESHOLD = 40


class TransactionStatus(str, Enum):
    PENDING_OTP = "pending_otp"
    APPROVED = "approved"
    BLOCKED = "blocked"
    INVESTIGATING = "investigating"

    def can_transition_to(self, target: "TransactionStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: Dict[TransactionStatus, frozenset] = {
    TransactionStatus.PENDING_OTP: frozenset(
        {TransactionStatus.APPROVED, TransactionStatus.BLOCKED, TransactionStatus.INVESTIGATING}
    ),
    TransactionStatus.APPROVED: frozenset({TransactionStatus.BLOCKED, TransactionStatus.INVESTIGATING}),
    TransactionStatus.INVESTIGATING: frozenset({TransactionStatus.APPROVED, TransactionStatus.BLOCKED}),
    TransactionStatus.BLOCKED: frozenset({TransactionStatus.INVESTIGATING}),
}


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    recipient: str
    user_id: str
    created_at: datetime
    anomaly_score: int
    flags: Tuple[str, ...]
    risk_level: str
    status: TransactionStatus
    location: Optional[Dict[str, float]] = None
    otp_verified_at: Optional[datetime] = field(default=None)

    def is_flagged(self, threshold: float = DEFAULT_FLAGGED_THRESHOLD) -> bool:
        return self.anomaly_score > threshold or bool(self.flags)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation used by the JSON API."""
        return {
            "id": self.id,
            "amount": self.amount,
            "recipient": self.recipient,
            "userId": self.user_id,
            "location": dict(self.location) if self.location else None,
            "timestamp": self.created_at.isoformat(),
            "anomalyScore": self.anomaly_score,
            "flags": list(self.flags),
            "riskLevel": self.risk_level,
            "status": self.status.value,
            "otpVerifiedAt": self.otp_verified_at.isoformat() if self.otp_verified_at else None,
        }


class Ledger:
    def __init__(self) -> None:
        self._records: Dict[str, Transaction] = {}
        self._last_id_ms = 0
        self._lock = threading.RLock()

    def next_id(self, created_at: datetime) -> str:
        """
        Allocate a unique id ordered by generation time.

        Ids are ``TX`` plus epoch milliseconds; two allocations inside the same
        millisecond get consecutive values.
        """
        with self._lock:
            ms = int(created_at.timestamp() * 1000)
            if ms <= self._last_id_ms:
                ms = self._last_id_ms + 1
            self._last_id_ms = ms
            return f"TX{ms}"

    def append(self, transaction: Transaction) -> str:
        with self._lock:
            if transaction.id in self._records:
                raise ValidationError(f"Duplicate transaction id: {transaction.id}")
            self._records[transaction.id] = transaction
        return transaction.id

    def get(self, transaction_id: str) -> Transaction:
        with self._lock:
            try:
                return self._records[transaction_id]
            except KeyError:
                raise NotFoundError(f"Unknown transaction: {transaction_id}") from None

    def set_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        *,
        otp_verified_at: Optional[datetime] = None,
    ) -> Transaction:
        """
        Move a transaction to ``status``.

        Raises:
            NotFoundError: Unknown transaction id.
            TransitionError: The current status may not move to ``status``.
        """
        target = TransactionStatus(status)
        with self._lock:
            current = self.get(transaction_id)
            if not current.status.can_transition_to(target):
                raise TransitionError(
                    f"Cannot move transaction {transaction_id} from {current.status.value} to {target.value}"
                )
            changes: Dict[str, Any] = {"status": target}
            if otp_verified_at is not None:
                changes["otp_verified_at"] = otp_verified_at
            updated = replace(current, **changes)
            self._records[transaction_id] = updated
        return updated

    def snapshot(self) -> List[Transaction]:
        with self._lock:
            return list(self._records.values())

    def recent_for_user(self, user_id: str, now: datetime, window_seconds: int) -> List[Transaction]:
        window = timedelta(seconds=window_seconds)
        return [
            t
            for t in self.snapshot()
            if t.user_id == user_id and timedelta(0) <= now - t.created_at < window
        ]

    def list_by_user(self, user_id: Optional[str] = None) -> List[Transaction]:
        rows = self.snapshot()
        if user_id:
            rows = [t for t in rows if t.user_id == user_id]
        return sorted(rows, key=lambda t: (t.created_at, t.id), reverse=True)

    def list_flagged(self, threshold: float = DEFAULT_FLAGGED_THRESHOLD) -> List[Transaction]:
        flagged = [t for t in self.snapshot() if t.is_flagged(threshold)]
        return sorted(flagged, key=lambda t: t.anomaly_score, reverse=True)

    def aggregate_metrics(self, threshold: float = DEFAULT_FLAGGED_THRESHOLD) -> Dict[str, Any]:
        rows = self.snapshot()
        total = len(rows)
        by_status = {status.value: 0 for status in TransactionStatus}
        for t in rows:
            by_status[t.status.value] += 1
        # Score only; list_flagged also admits low scores that carry flags.
        flagged_count = sum(1 for t in rows if t.anomaly_score > threshold)
        average = sum(t.anomaly_score for t in rows) / total if total else 0.0

        return {
            "totalTransactions": total,
            "flaggedTransactions": flagged_count,
            "approvedTransactions": by_status[TransactionStatus.APPROVED.value],
            "pendingTransactions": by_status[TransactionStatus.PENDING_OTP.value],
            "blockedTransactions": by_status[TransactionStatus.BLOCKED.value],
            "investigatingTransactions": by_status[TransactionStatus.INVESTIGATING.value],
            "statusCounts": by_status,
            "averageAnomalyScore": round(average, 2),
            "flaggedPercentage": round(flagged_count / total * 100, 2) if total else 0.0,
            "alertQueueCount": by_status[TransactionStatus.PENDING_OTP.value],
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
