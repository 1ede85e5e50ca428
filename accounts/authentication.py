"""
Session token verification.

Turns an opaque bearer credential into an authenticated actor. The REST API
uses simplejwt's ``JWTAuthentication`` directly; the WebSocket middleware
calls :class:`SessionVerifier` so both transports accept the same tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from .roles import Role

User = get_user_model()
logger = logging.getLogger(__name__)


class Unauthenticated(Exception):
    """Missing or invalid credential."""
    status_code = 401


@dataclass(frozen=True)
class ActorClaims:
    """Identity carried inside a verified token."""

    user_id: str
    username: str
    role: Role


def issue_tokens(user) -> dict:
    """Issue an access/refresh pair carrying the actor's username and role."""
    refresh = RefreshToken.for_user(user)
    refresh['username'] = user.username
    refresh['role'] = user.role
    access = refresh.access_token
    return {
        'access': str(access),
        'refresh': str(refresh),
    }


class SessionVerifier:
    """
    Validates access tokens into actors.

    The user row is re-read on every verification so role changes and
    deactivation take effect on the next connection.
    """

    def verify_claims(self, raw_token: Optional[str]) -> ActorClaims:
        if not raw_token:
            raise Unauthenticated("No token provided")
        try:
            token = AccessToken(raw_token)
        except TokenError as e:
            raise Unauthenticated(f"Invalid token: {e}")

        user_id = token.get(api_settings.USER_ID_CLAIM)
        if not user_id:
            raise Unauthenticated("Token carries no user id")
        role = token.get('role', Role.USER)
        try:
            role = Role(role)
        except ValueError:
            raise Unauthenticated(f"Token carries unknown role: {role}")
        return ActorClaims(
            user_id=str(user_id),
            username=token.get('username', ''),
            role=role,
        )

    def verify(self, raw_token: Optional[str]):
        """Return the active user for a token or raise Unauthenticated."""
        claims = self.verify_claims(raw_token)
        try:
            user = User.objects.get(id=claims.user_id, is_active=True)
        except (User.DoesNotExist, ValidationError, ValueError):
            logger.info(f"Token for unknown or inactive user {claims.user_id}")
            raise Unauthenticated("Unknown or inactive user")
        return user


session_verifier = SessionVerifier()
