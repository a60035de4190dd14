"""Bearer token validation for HTTP and websocket callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, Callable

from fastapi import Header
import jwt

from app.domain import AuthorizationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthClaims:
    """Verified identity extracted from a bearer token.

    Attributes:
        subject_id: Token subject (`sub`).
        org_id: Organization the caller acts for.
        email: Optional caller email.
        roles: Granted role names.
        expires_at: Token expiry in UTC, None when the token has no `exp`.
    """

    subject_id: str
    org_id: str
    email: str | None = None
    roles: tuple[str, ...] = ()
    expires_at: datetime | None = None


class JwtAuthValidator:
    """Validate HMAC-signed JWT bearer tokens with PyJWT."""

    _BEARER_PREFIX = "bearer "

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: str | None = None,
        issuer: str | None = None,
    ):
        """Initialize token validator.

        Args:
            secret: Shared signing secret.
            algorithm: Accepted signing algorithm.
            audience: Optional required `aud` claim.
            issuer: Optional required `iss` claim.

        Raises:
            ValueError: Raised when secret is blank.
        """

        if not secret.strip():
            raise ValueError("secret must not be blank")
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience
        self._issuer = issuer

    def auth_validate(self, authorization_header: str | None) -> AuthClaims:
        """Validate an `Authorization: Bearer <token>` header value.

        Args:
            authorization_header: Raw header value, possibly missing.

        Returns:
            AuthClaims: Verified caller identity.

        Raises:
            AuthorizationError: Raised when the header is missing or the token is invalid.
        """

        if authorization_header is None or not authorization_header.strip():
            raise AuthorizationError("Missing authorization header")
        normalized_header = authorization_header.strip()
        if not normalized_header.lower().startswith(self._BEARER_PREFIX):
            raise AuthorizationError("Authorization header must use the Bearer scheme")
        return self.auth_validate_token(normalized_header[len(self._BEARER_PREFIX):].strip())

    def auth_validate_token(self, token: str | None) -> AuthClaims:
        """Validate a raw JWT.

        Args:
            token: Encoded token.

        Returns:
            AuthClaims: Verified caller identity.

        Raises:
            AuthorizationError: Raised when the token is missing, malformed, badly signed or expired.
        """

        if token is None or not token.strip():
            raise AuthorizationError("Missing bearer token")

        try:
            payload = jwt.decode(
                token.strip(),
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["sub"], "verify_aud": self._audience is not None},
            )
        except jwt.ExpiredSignatureError as error:
            raise AuthorizationError("Token has expired") from error
        except jwt.InvalidTokenError as error:
            logger.debug("token rejected error=%s", type(error).__name__)
            raise AuthorizationError("Invalid token") from error

        return self._auth_map_claims(payload)

    def _auth_map_claims(self, payload: dict[str, Any]) -> AuthClaims:
        """Map decoded token payload to typed claims.

        Args:
            payload: Decoded JWT payload.

        Returns:
            AuthClaims: Typed claims.

        Raises:
            AuthorizationError: Raised when required claims are missing.
        """

        subject_id = str(payload.get("sub") or "").strip()
        org_id = str(payload.get("org_id") or "").strip()
        if not subject_id:
            raise AuthorizationError("Token subject is missing")
        if not org_id:
            raise AuthorizationError("Token organization is missing")

        roles_claim = payload.get("roles") or ()
        if isinstance(roles_claim, str):
            roles_claim = (roles_claim,)
        expires_claim = payload.get("exp")
        expires_at = None
        if isinstance(expires_claim, (int, float)):
            expires_at = datetime.fromtimestamp(expires_claim, tz=timezone.utc)

        email = payload.get("email")
        return AuthClaims(
            subject_id=subject_id,
            org_id=org_id,
            email=str(email) if email else None,
            roles=tuple(str(role) for role in roles_claim),
            expires_at=expires_at,
        )


def api_create_claims_dependency(auth_validator: JwtAuthValidator) -> Callable[..., AuthClaims]:
    """Create a FastAPI dependency resolving the caller's verified claims.

    Args:
        auth_validator: Token validator.

    Returns:
        Callable[..., AuthClaims]: Dependency callable for `Depends`.

    Raises:
        ValueError: Raised when auth_validator is None.
    """

    if auth_validator is None:
        raise ValueError("auth_validator must not be None")

    def api_require_claims(authorization: str | None = Header(default=None)) -> AuthClaims:
        return auth_validator.auth_validate(authorization)

    return api_require_claims
