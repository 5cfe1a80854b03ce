"""Authentication service for session JWT verification.

Session tokens are issued by the external login service and signed with a
shared secret. The ``sub`` claim carries the user id.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import jwt

from jzapi.exceptions import InvalidTokenError, MissingTokenError
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


@dataclass
class SessionClaims:
    """Identity extracted from a verified session token."""

    user_id: UUID
    email: Optional[str] = None


class AuthService:
    """Service for verifying session JWTs."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def verify_token(self, authorization_header: Optional[str]) -> SessionClaims:
        """
        Verify a session JWT and extract the user id.

        Args:
            authorization_header: The Authorization header value (Bearer <token>)

        Returns:
            SessionClaims for the token's subject

        Raises:
            MissingTokenError: If no token is provided
            InvalidTokenError: If token is invalid or expired
        """
        if not authorization_header:
            raise MissingTokenError()

        parts = authorization_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise InvalidTokenError("Invalid authorization header format")

        if not self._secret:
            log.error("session secret not configured")
            raise InvalidTokenError("Token verification failed")

        try:
            payload = jwt.decode(
                parts[1],
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": True, "require": ["sub"]},
            )
        except jwt.ExpiredSignatureError:
            log.warning("token expired")
            raise InvalidTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            log.warning("token invalid", error=str(e))
            raise InvalidTokenError(f"Token validation failed: {str(e)}")

        try:
            user_id = UUID(str(payload["sub"]))
        except ValueError:
            raise InvalidTokenError("Token missing user identifier")

        log.debug("token verified", user_id=str(user_id))
        return SessionClaims(user_id=user_id, email=payload.get("email"))


# Singleton instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        from jzapi.config import get_settings

        settings = get_settings()
        _auth_service = AuthService(
            secret=settings.session_secret, algorithm=settings.session_algorithm
        )
    return _auth_service
