"""
fraud/scoring.py

Heuristic risk scoring for submitted transactions.

Simple, transparent logic:
- Each rule is an independent boolean check with a fixed weight.
- Triggered rules add their weight and append a named flag, in rule order.
- The risk tier is looked up on the score clamped to [0, 100].
- OTP confirmation is required when the raw score is above 50.

Nothing in here touches storage or the wall clock; callers pass the
recent-transaction window and ``now`` in.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Tuple

from django.utils import timezone

from fraud.errors import ValidationError

VERY_HIGH_AMOUNT = 50000
HIGH_AMOUNT = 10000
SUSPICIOUS_KEYWORDS: Tuple[str, ...] = ("unknown", "temp", "test", "fake")
HIGH_FREQUENCY_COUNT = 5
MODERATE_FREQUENCY_COUNT = 3
UNUSUAL_HOURS = frozenset({22, 23, 0, 1, 2, 3, 4, 5})
OTP_SCORE_THRESHOLD = 50

FLAG_VERY_HIGH_AMOUNT = "Very High Amount"
FLAG_HIGH_AMOUNT = "High Amount"
FLAG_SUSPICIOUS_RECIPIENT = "Suspicious Recipient"
FLAG_HIGH_FREQUENCY = "High Frequency"
FLAG_MODERATE_FREQUENCY = "Moderate Frequency"
FLAG_LOCATION_UNAVAILABLE = "Location Unavailable"
FLAG_UNUSUAL_TIME = "Unusual Time"

# (minimum clamped score, tier), highest first.
RISK_TIERS: Tuple[Tuple[int, str], ...] = (
    (80, "critical"),
    (60, "high"),
    (40, "medium"),
)
RISK_LEVELS: Tuple[str, ...] = ("low", "medium", "high", "critical")


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    flags: Tuple[str, ...]
    risk_level: str
    requires_otp: bool


def _validated_amount(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError("amount must be a number", errors={"amount": ["Enter a number."]})
    amount = float(value)
    if amount != amount or amount < 0:
        raise ValidationError(
            "amount must be a non-negative number",
            errors={"amount": ["Ensure this value is greater than or equal to 0."]},
        )
    return amount


def _validated_recipient(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("recipient is required", errors={"recipient": ["This field is required."]})
    return value


def risk_level_for(score: float) -> str:
    """
    Map a score onto its risk tier.

    Scores outside [0, 100] are clamped before the lookup, so an additive
    total such as 115 still lands in the top tier.
    """
    clamped = max(0, min(100, score))
    for minimum, level in RISK_TIERS:
        if clamped >= minimum:
            return level
    return "low"


def requires_otp_for(score: float) -> bool:
    return score > OTP_SCORE_THRESHOLD


def assess(
    attributes: Mapping[str, Any],
    recent: Sequence[Any],
    *,
    now: Optional[datetime] = None,
) -> RiskAssessment:
    """
    Score one transaction against the fixed rule set.

    Args:
        attributes: Mapping with amount, recipient and optional location.
        recent: Prior transactions by the same user inside the frequency window.
        now: Evaluation time; its local hour drives the unusual-time rule.

    Returns:
        RiskAssessment with the raw score, triggered flags, tier and OTP decision.

    Raises:
        ValidationError: If amount or recipient are malformed.
    """
    amount = _validated_amount(attributes.get("amount"))
    recipient = _validated_recipient(attributes.get("recipient"))
    now_dt = now or timezone.now()

    score = 0
    flags: list[str] = []

    if amount > VERY_HIGH_AMOUNT:
        score += 50
        flags.append(FLAG_VERY_HIGH_AMOUNT)
    elif amount > HIGH_AMOUNT:
        score += 30
        flags.append(FLAG_HIGH_AMOUNT)

    lowered = recipient.lower()
    if any(keyword in lowered for keyword in SUSPICIOUS_KEYWORDS):
        score += 25
        flags.append(FLAG_SUSPICIOUS_RECIPIENT)

    recent_count = len(recent)
    if recent_count >= HIGH_FREQUENCY_COUNT:
        score += 40
        flags.append(FLAG_HIGH_FREQUENCY)
    elif recent_count >= MODERATE_FREQUENCY_COUNT:
        score += 20
        flags.append(FLAG_MODERATE_FREQUENCY)

    if not attributes.get("location"):
        score += 15
        flags.append(FLAG_LOCATION_UNAVAILABLE)

    local_hour = timezone.localtime(now_dt).hour if timezone.is_aware(now_dt) else now_dt.hour
    if local_hour in UNUSUAL_HOURS:
        score += 20
        flags.append(FLAG_UNUSUAL_TIME)

    return RiskAssessment(
        score=score,
        flags=tuple(flags),
        risk_level=risk_level_for(score),
        requires_otp=requires_otp_for(score),
    )


def recommend(score: float) -> Tuple[str, str]:
    """
    Advisory text and action for an analyst looking at a scored transaction.

    Returns:
        Tuple of (suggestion, recommended action) where action is one of
        approve, verify or block.
    """
    if score > 80:
        return (
            "This transaction shows critical risk indicators. We strongly recommend blocking "
            "this transaction and conducting a thorough investigation. Multiple red flags "
            "suggest potential fraud activity.",
            "block",
        )
    if score > 60:
        return (
            "This transaction appears highly suspicious. Consider requiring additional "
            "verification steps such as biometric authentication or contacting the user "
            "directly before proceeding.",
            "block",
        )
    if score > 40:
        return (
            "This transaction shows moderate risk. While it may be legitimate, we recommend "
            "monitoring the user's activity closely and potentially requiring OTP verification.",
            "verify",
        )
    return (
        "This transaction appears to be within normal parameters. However, continue "
        "monitoring for any unusual patterns.",
        "approve",
    )
