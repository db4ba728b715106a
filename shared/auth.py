"""
Bearer and share token handling — framework-agnostic.

Two credentials are understood:

- An access token (``Authorization: Bearer <jwt>``) whose ``sub`` claim is
  a user id.
- A share token (``x-share-token`` header) whose ``websiteId`` claim grants
  read access to exactly one website without a user account.

Both are JWTs signed with the configured keys (RS256 when a key pair is
configured, HS256 otherwise).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import jwt

from config import JWTSettings
from errors import AuthenticationError
from schemas.models.user import UserDoc

SHARE_TOKEN_HEADER = "x-share-token"


@dataclass(frozen=True)
class AuthContext:
    """Who is calling: a signed-in user, a share token holder, or both."""

    user: Optional[UserDoc] = None
    share_token: Optional[dict[str, Any]] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer ...`` header value."""
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def decode_token(token: str, settings: JWTSettings) -> dict[str, Any]:
    """Verify *token* and return its claims.

    Raises:
        AuthenticationError: when no verification key is configured or the
            token is invalid, expired, or issued for another audience.
    """
    key = settings.verification_key
    if not key:
        raise AuthenticationError("token verification is not configured")
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[settings.algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("invalid token") from e


def decode_share_token(token: str, settings: JWTSettings) -> dict[str, Any]:
    """Verify a share token; it must name the website it grants access to."""
    claims = decode_token(token, settings)
    if not claims.get("websiteId"):
        raise AuthenticationError("invalid share token")
    return claims
