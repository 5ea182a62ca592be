"""Helpers for the account endpoints."""

from __future__ import annotations

from typing import Any, Dict

from django.contrib.auth import get_user_model

DEMO_EMAIL = "demo@fraudguard.com"
DEMO_PASSWORD = "demo123"
DEMO_NAME = "Demo User"


def normalize_email(value: Any) -> str:
    return str(value or "").strip().lower()


def find_user_by_email(email: str):
    return get_user_model().objects.filter(email__iexact=normalize_email(email)).first()


def otp_subject_for_user(user) -> str:
    return f"user:{user.pk}"


def public_user(user) -> Dict[str, Any]:
    """User fields safe to send to the browser."""
    return {
        "id": str(user.pk),
        "name": user.get_full_name() or user.first_name or user.username,
        "email": user.email,
        "isStaff": bool(user.is_staff),
        "createdAt": user.date_joined.isoformat(),
    }


def create_account(*, name: str, email: str, password: str, is_staff: bool = False):
    email = normalize_email(email)
    return get_user_model().objects.create_user(
        username=email,
        email=email,
        password=password,
        first_name=name.strip(),
        is_staff=is_staff,
    )
