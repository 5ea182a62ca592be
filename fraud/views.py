"""
Views for the fraud API.

"""

# fraud/views.py
from __future__ import annotations

import logging
from typing import Any, Dict

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from accounts.decorators import api_staff_required
from fraud import reporting, scoring, services
from fraud.decorators import bind_form, json_api, read_json
from fraud.errors import ValidationError
from fraud.forms import AnalyzeForm, ReviewForm, SuggestionForm, VerifyOtpForm

logger = logging.getLogger(__name__)


def health(request: HttpRequest) -> JsonResponse:
    return JsonResponse({"status": "ok"})


def ping(request: HttpRequest) -> JsonResponse:
    return JsonResponse({"message": "pong"})


def _transactions_payload(transactions) -> Dict[str, Any]:
    return {
        "success": True,
        "transactions": [t.to_dict() for t in transactions],
        "total": len(transactions),
    }


@json_api
@require_POST
def analyze(request: HttpRequest) -> JsonResponse:
    data = bind_form(AnalyzeForm, read_json(request))

    # A signed-in caller always submits as themselves.
    api_user = getattr(request, "api_user", None)
    user_id = str(api_user.pk) if api_user is not None else data.get("userId") or ""
    if not user_id:
        raise ValidationError("Invalid input", errors={"userId": ["This field is required."]})

    submission = services.get_workflow().submit(
        {
            "amount": data["amount"],
            "recipient": data["recipient"],
            "user_id": user_id,
            "location": data.get("location"),
        }
    )
    assessment = submission.assessment

    payload: Dict[str, Any] = {
        "success": True,
        "transactionId": submission.transaction.id,
        "result": {
            "anomalyScore": assessment.score,
            "flags": list(assessment.flags),
            "riskLevel": assessment.risk_level,
            "requiresOtp": assessment.requires_otp,
        },
        "message": (
            "Transaction flagged as suspicious. OTP verification required."
            if assessment.requires_otp
            else "Transaction approved."
        ),
    }
    if submission.challenge is not None:
        payload["otpExpiresIn"] = submission.challenge.expires_in
        if submission.masked_contact:
            payload["maskedContact"] = submission.masked_contact
    return JsonResponse(payload)


@json_api
@require_POST
def verify_otp(request: HttpRequest) -> JsonResponse:
    data = bind_form(VerifyOtpForm, read_json(request))
    transaction = services.get_workflow().verify(data["transactionId"], data["otp"])
    return JsonResponse(
        {
            "success": True,
            "message": "OTP verified successfully. Transaction approved.",
            "verifiedAt": transaction.otp_verified_at.isoformat(),
            "transaction": transaction.to_dict(),
        }
    )


@json_api
@require_GET
def transaction_history(request: HttpRequest) -> JsonResponse:
    user_id = (request.GET.get("userId") or "").strip() or None
    transactions = services.get_workflow().ledger.list_by_user(user_id)
    return JsonResponse(_transactions_payload(transactions))


@json_api
@require_GET
@api_staff_required
def flagged_transactions(request: HttpRequest) -> JsonResponse:
    ledger = services.get_workflow().ledger
    transactions = ledger.list_flagged(services.flagged_threshold())
    return JsonResponse(_transactions_payload(transactions))


@json_api
@require_GET
@api_staff_required
def system_metrics(request: HttpRequest) -> JsonResponse:
    ledger = services.get_workflow().ledger
    return JsonResponse(
        {"success": True, "metrics": ledger.aggregate_metrics(services.flagged_threshold())}
    )


@json_api
@require_GET
@api_staff_required
def risk_breakdown(request: HttpRequest) -> JsonResponse:
    snapshot = services.get_workflow().ledger.snapshot()
    return JsonResponse({"success": True, "breakdown": reporting.build_risk_breakdown(snapshot)})


@json_api
@require_POST
@api_staff_required
def review_transaction(request: HttpRequest, transaction_id: str) -> JsonResponse:
    data = bind_form(ReviewForm, read_json(request))
    transaction = services.get_workflow().review(transaction_id, data["action"])
    return JsonResponse({"success": True, "transaction": transaction.to_dict()})


@json_api
@require_POST
def ai_suggestion(request: HttpRequest) -> JsonResponse:
    body = read_json(request)
    transaction_data = body.get("transactionData")
    if not isinstance(transaction_data, dict):
        raise ValidationError("Invalid input", errors={"transactionData": ["This field is required."]})
    data = bind_form(SuggestionForm, transaction_data)

    suggestion, action = scoring.recommend(data["anomalyScore"])
    return JsonResponse({"success": True, "suggestion": suggestion, "recommendedAction": action})
