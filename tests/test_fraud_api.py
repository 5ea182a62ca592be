"""
tests/test_fraud_api.py

End-to-end tests for the fraud JSON API through the Django test client.

Focus:
- analyze -> verify-otp round trip and its error statuses
- staff-only ops endpoints (flagged, metrics, breakdown, review)
- the shared error contract (400/401/403/404/405/409/410/500)
"""
from __future__ import annotations

import pytest

pytestmark = pytest.mark.django_db

HOME = {"lat": 19.07, "lng": 72.87}


def _risky_body(user_id: str) -> dict:
    return {"amount": 60000, "recipient": "unknown account", "userId": user_id, "location": HOME}


def test_analyze_low_risk_is_approved(workflow, post_json) -> None:
    resp = post_json("/api/fraud/analyze", {"amount": 15000, "recipient": "XYZ Corporation", "userId": "u1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["transactionId"].startswith("TX")
    assert body["result"] == {
        "anomalyScore": 45,
        "flags": ["High Amount", "Location Unavailable"],
        "riskLevel": "medium",
        "requiresOtp": False,
    }
    assert "otpExpiresIn" not in body


def test_analyze_risky_issues_otp_and_emails_customer(workflow, post_json, customer, mailoutbox) -> None:
    resp = post_json("/api/fraud/analyze", _risky_body(str(customer.pk)))

    body = resp.json()
    assert resp.status_code == 200
    assert body["result"]["requiresOtp"] is True
    assert body["otpExpiresIn"] == 120
    assert body["maskedContact"] == "d**o@fraudguard.com"

    code = workflow.otp_store.active(body["transactionId"]).code
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ["demo@fraudguard.com"]
    assert code in mailoutbox[0].body


def test_analyze_uses_token_user_when_user_id_missing(workflow, post_json, customer, customer_headers) -> None:
    resp = post_json("/api/fraud/analyze", {"amount": 10, "recipient": "Coffee Co"}, **customer_headers)

    assert resp.status_code == 200
    tx = workflow.ledger.get(resp.json()["transactionId"])
    assert tx.user_id == str(customer.pk)


def test_analyze_token_user_overrides_body_user_id(workflow, post_json, customer, customer_headers, mailoutbox) -> None:
    body = {"amount": 60000, "recipient": "unknown account", "userId": "ops@fraudguard.com", "location": HOME}

    resp = post_json("/api/fraud/analyze", body, **customer_headers)

    assert resp.status_code == 200
    tx = workflow.ledger.get(resp.json()["transactionId"])
    assert tx.user_id == str(customer.pk)
    assert mailoutbox[0].to == ["demo@fraudguard.com"]


def test_analyze_without_any_user_is_400(workflow, post_json) -> None:
    resp = post_json("/api/fraud/analyze", {"amount": 10, "recipient": "Coffee Co"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "ValidationError"
    assert "userId" in resp.json()["errors"]


@pytest.mark.parametrize(
    "body, field",
    [
        ({"amount": -1, "recipient": "Coffee Co", "userId": "u1"}, "amount"),
        ({"amount": "lots", "recipient": "Coffee Co", "userId": "u1"}, "amount"),
        ({"amount": True, "recipient": "Coffee Co", "userId": "u1"}, "amount"),
        ({"amount": 10, "recipient": "", "userId": "u1"}, "recipient"),
        ({"amount": 10, "recipient": "Coffee Co", "userId": "u1", "location": {"lat": 200, "lng": 0}}, "location"),
        ({"amount": 10, "recipient": "Coffee Co", "userId": "u1", "location": "home"}, "location"),
    ],
)
def test_analyze_rejects_bad_fields(workflow, post_json, body, field) -> None:
    resp = post_json("/api/fraud/analyze", body)

    assert resp.status_code == 400
    assert field in resp.json()["errors"]
    assert len(workflow.ledger) == 0


def test_analyze_rejects_non_json_body(workflow, client) -> None:
    resp = client.post("/api/fraud/analyze", data="{not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Request body must be valid JSON"


def test_analyze_requires_post(client) -> None:
    assert client.get("/api/fraud/analyze").status_code == 405


def test_unexpected_fault_is_generic_500(workflow, post_json, monkeypatch) -> None:
    def broken_submit(attributes):
        raise RuntimeError("secret stack detail")

    monkeypatch.setattr(workflow, "submit", broken_submit)

    resp = post_json("/api/fraud/analyze", {"amount": 10, "recipient": "Coffee Co", "userId": "u1"})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "InternalError"
    assert "secret" not in body["message"]


def test_verify_otp_approves_transaction(workflow, post_json, clock) -> None:
    tx_id = post_json("/api/fraud/analyze", _risky_body("u1")).json()["transactionId"]
    code = workflow.otp_store.active(tx_id).code
    clock.advance(30)

    resp = post_json("/api/fraud/verify-otp", {"transactionId": tx_id, "otp": code})

    assert resp.status_code == 200
    body = resp.json()
    assert body["transaction"]["status"] == "approved"
    assert body["verifiedAt"] == clock.now.isoformat()

    again = post_json("/api/fraud/verify-otp", {"transactionId": tx_id, "otp": code})
    assert again.status_code == 404


def test_verify_otp_wrong_code_is_mismatch(workflow, post_json) -> None:
    tx_id = post_json("/api/fraud/analyze", _risky_body("u1")).json()["transactionId"]
    code = workflow.otp_store.active(tx_id).code
    wrong = "000000" if code != "000000" else "111111"

    resp = post_json("/api/fraud/verify-otp", {"transactionId": tx_id, "otp": wrong})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Mismatch"
    assert workflow.ledger.get(tx_id).status.value == "pending_otp"


def test_verify_otp_expired_is_410(workflow, post_json, clock) -> None:
    tx_id = post_json("/api/fraud/analyze", _risky_body("u1")).json()["transactionId"]
    code = workflow.otp_store.active(tx_id).code
    clock.advance(121)

    resp = post_json("/api/fraud/verify-otp", {"transactionId": tx_id, "otp": code})

    assert resp.status_code == 410
    assert resp.json()["error"] == "Expired"


def test_verify_otp_unknown_transaction_is_404(workflow, post_json) -> None:
    resp = post_json("/api/fraud/verify-otp", {"transactionId": "TX1", "otp": "123456"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFound"


def test_verify_otp_non_numeric_code_is_400(workflow, post_json) -> None:
    resp = post_json("/api/fraud/verify-otp", {"transactionId": "TX1", "otp": "abc"})
    assert resp.status_code == 400
    assert "otp" in resp.json()["errors"]


def test_transaction_history_filters_by_user(workflow, post_json, client) -> None:
    post_json("/api/fraud/analyze", {"amount": 10, "recipient": "Coffee Co", "userId": "u1"})
    post_json("/api/fraud/analyze", {"amount": 20, "recipient": "Coffee Co", "userId": "u2"})

    body = client.get("/api/fraud/transactions", {"userId": "u1"}).json()
    assert body["total"] == 1
    assert body["transactions"][0]["userId"] == "u1"

    assert client.get("/api/fraud/transactions").json()["total"] == 2


@pytest.mark.parametrize(
    "url",
    ["/api/fraud/flagged", "/api/fraud/metrics", "/api/fraud/metrics/breakdown", "/api/fraud/export/flagged.csv"],
)
def test_ops_endpoints_require_token(client, url) -> None:
    resp = client.get(url)
    assert resp.status_code == 401
    assert resp.json()["error"] == "AuthenticationError"


@pytest.mark.parametrize("url", ["/api/fraud/flagged", "/api/fraud/metrics"])
def test_ops_endpoints_reject_customers(client, customer_headers, url) -> None:
    resp = client.get(url, **customer_headers)
    assert resp.status_code == 403
    assert resp.json()["error"] == "PermissionDenied"


def test_flagged_list_for_staff(workflow, post_json, client, staff_headers) -> None:
    post_json("/api/fraud/analyze", {"amount": 10, "recipient": "Coffee Co", "userId": "u1", "location": HOME})
    post_json("/api/fraud/analyze", _risky_body("u1"))

    body = client.get("/api/fraud/flagged", **staff_headers).json()
    assert body["total"] == 1
    assert body["transactions"][0]["anomalyScore"] == 75


def test_metrics_for_staff(workflow, post_json, client, staff_headers) -> None:
    post_json("/api/fraud/analyze", {"amount": 10, "recipient": "Coffee Co", "userId": "u1", "location": HOME})
    post_json("/api/fraud/analyze", _risky_body("u1"))

    metrics = client.get("/api/fraud/metrics", **staff_headers).json()["metrics"]
    assert metrics["totalTransactions"] == 2
    assert metrics["pendingTransactions"] == 1
    assert metrics["approvedTransactions"] == 1
    assert metrics["flaggedTransactions"] == 1
    assert metrics["flaggedPercentage"] == 50.0
    assert metrics["averageAnomalyScore"] == 37.5


def test_breakdown_for_staff(workflow, post_json, client, staff_headers) -> None:
    post_json("/api/fraud/analyze", _risky_body("u1"))

    breakdown = client.get("/api/fraud/metrics/breakdown", **staff_headers).json()["breakdown"]
    assert breakdown["total"] == 1
    assert breakdown["byRiskLevel"]["high"] == 1
    assert breakdown["byStatus"]["pending_otp"] == 1
    assert breakdown["byHour"][12] == 1


def test_review_blocks_pending_transaction(workflow, post_json, staff_headers) -> None:
    tx_id = post_json("/api/fraud/analyze", _risky_body("u1")).json()["transactionId"]

    resp = post_json(f"/api/fraud/transactions/{tx_id}/review", {"action": "block"}, **staff_headers)

    assert resp.status_code == 200
    assert resp.json()["transaction"]["status"] == "blocked"
    assert tx_id not in workflow.otp_store


def test_review_cannot_approve_pending(workflow, post_json, staff_headers) -> None:
    tx_id = post_json("/api/fraud/analyze", _risky_body("u1")).json()["transactionId"]

    resp = post_json(f"/api/fraud/transactions/{tx_id}/review", {"action": "approve"}, **staff_headers)

    assert resp.status_code == 409
    assert resp.json()["error"] == "InvalidTransition"


def test_review_unknown_action_is_400(workflow, post_json, staff_headers) -> None:
    tx_id = post_json("/api/fraud/analyze", _risky_body("u1")).json()["transactionId"]
    resp = post_json(f"/api/fraud/transactions/{tx_id}/review", {"action": "delete"}, **staff_headers)
    assert resp.status_code == 400


def test_review_unknown_transaction_is_404(workflow, post_json, staff_headers) -> None:
    resp = post_json("/api/fraud/transactions/TX404/review", {"action": "block"}, **staff_headers)
    assert resp.status_code == 404


@pytest.mark.parametrize("score, action", [(85, "block"), (50, "verify"), (10, "approve")])
def test_ai_suggestion(post_json, score, action) -> None:
    resp = post_json("/api/fraud/ai-suggestion", {"transactionData": {"anomalyScore": score}})
    assert resp.status_code == 200
    assert resp.json()["recommendedAction"] == action
    assert resp.json()["suggestion"]


def test_ai_suggestion_requires_transaction_data(post_json) -> None:
    resp = post_json("/api/fraud/ai-suggestion", {})
    assert resp.status_code == 400
    assert "transactionData" in resp.json()["errors"]
