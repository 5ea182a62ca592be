"""Account API views: sign-in, profile and the standalone OTP demo."""

from __future__ import annotations

import logging
from typing import Any, Dict

from django.conf import settings
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.http import HttpRequest, JsonResponse
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from django.views.decorators.http import require_GET, require_POST

from accounts.decorators import api_login_required
from accounts.forms import (
    ChangePasswordForm,
    ForgotPasswordForm,
    LoginForm,
    RegisterForm,
    UpdateProfileForm,
    VerifyUserOtpForm,
)
from accounts.services import (
    create_account,
    find_user_by_email,
    normalize_email,
    otp_subject_for_user,
    public_user,
)
from accounts.tokens import issue_token, revoke_token
from fraud import services as fraud_services
from fraud.decorators import bind_form, json_api, read_json
from fraud.errors import AuthenticationError, ConflictError
from fraud.notifications import mask_contact

logger = logging.getLogger(__name__)

RESET_MESSAGE = "If the email exists, a reset link has been sent"


def _auth_payload(user, message: str) -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "token": issue_token(user),
        "user": public_user(user),
    }


@json_api
@require_POST
def login(request: HttpRequest) -> JsonResponse:
    data = bind_form(LoginForm, read_json(request))
    user = find_user_by_email(data["email"])
    if user is None or not user.is_active or not user.check_password(data["password"]):
        raise AuthenticationError("Invalid email or password")
    logger.info("User %s signed in", user.pk)
    return JsonResponse(_auth_payload(user, "Login successful"))


@json_api
@require_POST
def register(request: HttpRequest) -> JsonResponse:
    data = bind_form(RegisterForm, read_json(request))
    if find_user_by_email(data["email"]) is not None:
        raise ConflictError("User with this email already exists")
    user = create_account(name=data["name"], email=data["email"], password=data["password"])
    logger.info("Registered user %s", user.pk)
    return JsonResponse(_auth_payload(user, "Registration successful"), status=201)


@json_api
@require_POST
@api_login_required
def logout(request: HttpRequest) -> JsonResponse:
    revoke_token(request.api_token)
    return JsonResponse({"success": True, "message": "Logout successful"})


@json_api
@require_GET
@api_login_required
def me(request: HttpRequest) -> JsonResponse:
    return JsonResponse({"success": True, "user": public_user(request.api_user)})


@json_api
@require_POST
@api_login_required
def update_profile(request: HttpRequest) -> JsonResponse:
    data = bind_form(UpdateProfileForm, read_json(request))
    user = request.api_user
    existing = find_user_by_email(data["email"])
    if existing is not None and existing.pk != user.pk:
        raise ConflictError()

    email = normalize_email(data["email"])
    user.first_name = data["name"].strip()
    user.email = email
    user.username = email
    user.save(update_fields=["first_name", "email", "username"])
    return JsonResponse(
        {"success": True, "message": "Profile updated successfully", "user": public_user(user)}
    )


@json_api
@require_POST
@api_login_required
def change_password(request: HttpRequest) -> JsonResponse:
    data = bind_form(ChangePasswordForm, read_json(request))
    user = request.api_user
    if not user.check_password(data["currentPassword"]):
        raise AuthenticationError("Current password is incorrect")
    user.set_password(data["newPassword"])
    user.save(update_fields=["password"])
    return JsonResponse({"success": True, "message": "Password changed successfully"})


@json_api
@require_POST
def forgot_password(request: HttpRequest) -> JsonResponse:
    data = bind_form(ForgotPasswordForm, read_json(request))
    user = find_user_by_email(data["email"])
    if user is not None:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        base_url = getattr(settings, "FRAUDGUARD_PASSWORD_RESET_URL", "https://fraudguard.com/reset-password")
        send_mail(
            "Reset Your FraudGuard Password",
            (
                f"Hi {user.first_name or user.username},\n\n"
                "You requested to reset your password. Use the link below to reset it:\n\n"
                f"{base_url}?uid={uid}&token={token}\n\n"
                "If you didn't request this, please ignore this email.\n\n"
                "FraudGuard Team\n"
            ),
            getattr(settings, "FRAUDGUARD_NOTIFY_FROM_EMAIL", "security@fraudguard.com"),
            [user.email],
        )
    return JsonResponse({"success": True, "message": RESET_MESSAGE})


@json_api
@require_POST
@api_login_required
def generate_otp(request: HttpRequest) -> JsonResponse:
    user = request.api_user
    workflow = fraud_services.get_workflow()
    challenge = workflow.otp_store.issue(otp_subject_for_user(user))

    masked = mask_contact(user.email)
    if workflow.notifier is not None:
        masked = workflow.notifier.notify(
            challenge.subject,
            challenge.code,
            user_id=str(user.pk),
            message=f"Your FraudGuard one-time passcode is valid for {challenge.expires_in // 60} minutes.",
        ) or masked

    return JsonResponse(
        {
            "success": True,
            "message": "OTP generated successfully",
            "otpId": f"otp_{int(challenge.issued_at.timestamp() * 1000)}_{user.pk}",
            "maskedContact": masked,
            "expiresIn": challenge.expires_in,
        }
    )


@json_api
@require_POST
@api_login_required
def verify_otp(request: HttpRequest) -> JsonResponse:
    data = bind_form(VerifyUserOtpForm, read_json(request))
    user = request.api_user
    verified_at = fraud_services.get_workflow().otp_store.verify(otp_subject_for_user(user), data["otp"])
    return JsonResponse(
        {
            "success": True,
            "message": "OTP verified successfully",
            "verifiedAt": verified_at.isoformat(),
        }
    )
