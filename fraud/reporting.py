"""
Reporting helpers for the ops dashboard.

Builds pandas frames from a ledger snapshot:
- risk breakdown (per tier, per status, per local hour, top flags)
- flagged export frame with a fixed column order
"""

from __future__ import annotations

from typing import Any, Dict, Sequence

import pandas as pd
from django.utils import timezone

from fraud.ledger import Transaction, TransactionStatus
from fraud.scoring import RISK_LEVELS

EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "timestamp",
    "userId",
    "amount",
    "recipient",
    "anomalyScore",
    "riskLevel",
    "status",
    "flags",
    "otpVerifiedAt",
)


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """
    Flatten transactions into a DataFrame.

    Returns:
        One row per transaction; an empty frame still carries every column.
    """
    records = []
    for t in transactions:
        records.append(
            {
                "id": t.id,
                "timestamp": t.created_at.isoformat(),
                "hour": timezone.localtime(t.created_at).hour
                if timezone.is_aware(t.created_at)
                else t.created_at.hour,
                "userId": t.user_id,
                "amount": float(t.amount),
                "recipient": t.recipient,
                "anomalyScore": int(t.anomaly_score),
                "riskLevel": t.risk_level,
                "status": t.status.value,
                "flags": list(t.flags),
                "otpVerifiedAt": t.otp_verified_at.isoformat() if t.otp_verified_at else "",
            }
        )
    columns = list(EXPORT_COLUMNS) + ["hour"]
    return pd.DataFrame.from_records(records, columns=columns)


def build_risk_breakdown(transactions: Sequence[Transaction]) -> Dict[str, Any]:
    """
    Aggregate a ledger snapshot for the dashboard charts.

    Every risk level, status and hour is present in the output, zero-filled.
    """
    df = transactions_frame(transactions)
    statuses = [s.value for s in TransactionStatus]

    by_level = df["riskLevel"].value_counts().reindex(RISK_LEVELS, fill_value=0)
    by_status = df["status"].value_counts().reindex(statuses, fill_value=0)
    amount_by_level = (
        df.groupby("riskLevel")["amount"].sum().reindex(RISK_LEVELS, fill_value=0.0)
    )
    by_hour = df["hour"].value_counts().reindex(range(24), fill_value=0)

    flags = df["flags"].explode().dropna()
    top_flags = flags.value_counts().head(10)

    return {
        "total": int(len(df)),
        "byRiskLevel": {level: int(n) for level, n in by_level.items()},
        "byStatus": {status: int(n) for status, n in by_status.items()},
        "amountByRiskLevel": {level: round(float(v), 2) for level, v in amount_by_level.items()},
        "byHour": [int(n) for n in by_hour.tolist()],
        "topFlags": [{"flag": str(flag), "count": int(n)} for flag, n in top_flags.items()],
    }


def flagged_export_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    df = transactions_frame(transactions)
    df["flags"] = df["flags"].apply(lambda values: "; ".join(values))
    return df.loc[:, list(EXPORT_COLUMNS)]
