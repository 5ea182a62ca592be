"""
Error taxonomy for the fraud API.

Every error carries a stable ``kind`` (sent to clients) and the HTTP status
the request layer maps it to. Views never build error payloads by hand; they
raise one of these and let ``fraud.decorators.json_api`` render it.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class FraudGuardError(Exception):
    kind = "Error"
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.kind,
            "message": self.message,
        }
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(FraudGuardError):
    kind = "ValidationError"
    status_code = 400
    default_message = "Invalid input"


class AuthenticationError(FraudGuardError):
    kind = "AuthenticationError"
    status_code = 401
    default_message = "Access token is required"


class PermissionDeniedError(FraudGuardError):
    kind = "PermissionDenied"
    status_code = 403
    default_message = "Staff access required."


class NotFoundError(FraudGuardError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found"


class TransitionError(FraudGuardError):
    kind = "InvalidTransition"
    status_code = 409
    default_message = "Status change not allowed"


class ExpiredError(FraudGuardError):
    kind = "Expired"
    status_code = 410
    default_message = "OTP has expired. Please generate a new one."


class MismatchError(FraudGuardError):
    kind = "Mismatch"
    status_code = 400
    default_message = "Invalid OTP. Please try again."


class InternalError(FraudGuardError):
    kind = "InternalError"
    status_code = 500
    default_message = "Internal server error"


class ConflictError(FraudGuardError):
    kind = "Conflict"
    status_code = 409
    default_message = "Email is already taken by another user"
