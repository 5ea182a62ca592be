"""Middleware resolving bearer tokens into API users."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model

from accounts.tokens import bearer_token, read_token
from fraud.errors import AuthenticationError

logger = logging.getLogger(__name__)


def _user_for_token(token: str):
    if not token:
        return None
    try:
        user_pk = read_token(token)
    except AuthenticationError:
        logger.info("Rejected bearer token")
        return None
    return get_user_model().objects.filter(pk=user_pk, is_active=True).first()


class ApiTokenMiddleware:
    """
    Attach ``request.api_user`` (or None) and ``request.api_token``.

    Requests without an Authorization header never hit the database.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = bearer_token(request)
        request.api_token = token
        request.api_user = _user_for_token(token)
        return self.get_response(request)
