"""
Signed, expiring API tokens.

Tokens are ``TimestampSigner`` signatures over the user's primary key, so the
server keeps no token table. Logout revokes a token by remembering its
signature in the cache until the token would have expired anyway.
"""
from __future__ import annotations

import hashlib

from django.conf import settings
from django.core import signing
from django.core.cache import cache

from fraud.errors import AuthenticationError

TOKEN_SALT = "fraudguard.api-token"
DEFAULT_MAX_AGE_SECONDS = 12 * 60 * 60
REVOKED_KEY_PREFIX = "fraudguard:revoked-token:"


def _signer() -> signing.TimestampSigner:
    return signing.TimestampSigner(salt=TOKEN_SALT)


def token_max_age() -> int:
    return int(getattr(settings, "FRAUDGUARD_TOKEN_MAX_AGE_SECONDS", DEFAULT_MAX_AGE_SECONDS))


def _revoked_key(token: str) -> str:
    return REVOKED_KEY_PREFIX + hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token(user) -> str:
    return _signer().sign_object({"uid": user.pk})


def read_token(token: str) -> int:
    """
    Validate ``token`` and return the user primary key it carries.

    Raises:
        AuthenticationError: Token is malformed, tampered, expired or revoked.
    """
    if not token:
        raise AuthenticationError()
    try:
        payload = _signer().unsign_object(token, max_age=token_max_age())
    except signing.SignatureExpired:
        raise AuthenticationError("Invalid or expired token") from None
    except signing.BadSignature:
        raise AuthenticationError("Invalid or expired token") from None
    if cache.get(_revoked_key(token)):
        raise AuthenticationError("Invalid or expired token")
    try:
        return int(payload["uid"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token") from None


def revoke_token(token: str) -> None:
    cache.set(_revoked_key(token), True, timeout=token_max_age())


def bearer_token(request) -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return value.strip()
