"""Tests for JWT bearer token validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.api import JwtAuthValidator
from app.domain import AuthorizationError

_SECRET = "test-secret-with-at-least-32-bytes!!"


def _encode(payload: dict, secret: str = _SECRET) -> str:
    """Encode one HS256 token.

    Args:
        payload: Token claims.
        secret: Signing secret.

    Returns:
        str: Encoded token.
    """

    return jwt.encode(payload, secret, algorithm="HS256")


def test_auth_validate_maps_claims() -> None:
    """Verify subject, organization, email, roles and expiry are mapped."""

    expires_at = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(hours=1)
    token = _encode(
        {
            "sub": "user-1",
            "org_id": "org-a",
            "email": "user@example.com",
            "roles": ["analyst", "admin"],
            "exp": int(expires_at.timestamp()),
        }
    )

    claims = JwtAuthValidator(secret=_SECRET).auth_validate(f"Bearer {token}")

    assert claims.subject_id == "user-1"
    assert claims.org_id == "org-a"
    assert claims.email == "user@example.com"
    assert claims.roles == ("analyst", "admin")
    assert claims.expires_at == expires_at


@pytest.mark.parametrize(
    "authorization_header",
    [None, "", "Basic abc", "Bearer ", "Bearer not-a-token"],
)
def test_auth_validate_rejects_missing_or_malformed_headers(authorization_header) -> None:
    """Verify missing and malformed headers raise `AuthorizationError`."""

    with pytest.raises(AuthorizationError):
        JwtAuthValidator(secret=_SECRET).auth_validate(authorization_header)


def test_auth_validate_rejects_bad_signature_and_expired_tokens() -> None:
    """Verify signature and expiry checks."""

    validator = JwtAuthValidator(secret=_SECRET)
    forged_token = _encode({"sub": "user-1", "org_id": "org-a"}, secret="another-secret-with-at-least-32-bytes")
    expired_token = _encode({"sub": "user-1", "org_id": "org-a", "exp": 1})

    with pytest.raises(AuthorizationError):
        validator.auth_validate(f"Bearer {forged_token}")
    with pytest.raises(AuthorizationError) as error_info:
        validator.auth_validate(f"Bearer {expired_token}")

    assert error_info.value.http_status == 401
    assert error_info.value.message == "Token has expired"


def test_auth_validate_requires_organization_claim() -> None:
    """Verify tokens without `org_id` are rejected."""

    with pytest.raises(AuthorizationError):
        JwtAuthValidator(secret=_SECRET).auth_validate(f"Bearer {_encode({'sub': 'user-1'})}")


def test_auth_validate_checks_audience_when_configured() -> None:
    """Verify configured audiences are enforced."""

    validator = JwtAuthValidator(secret=_SECRET, audience="analysis-hub")
    accepted_token = _encode({"sub": "user-1", "org_id": "org-a", "aud": "analysis-hub"})
    rejected_token = _encode({"sub": "user-1", "org_id": "org-a", "aud": "other"})

    assert validator.auth_validate(f"Bearer {accepted_token}").org_id == "org-a"
    with pytest.raises(AuthorizationError):
        validator.auth_validate(f"Bearer {rejected_token}")
