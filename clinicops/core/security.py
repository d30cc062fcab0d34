"""Operator bearer tokens.

Tokens are issued by the identity service. This module verifies them and
pulls out the operator id recorded as ``actor_id`` on every ledger entry.
``issue_operator_token`` exists for scripts and tests.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt

from clinicops.config import settings

TOKEN_TYPE = "access"


def issue_operator_token(operator_id: UUID, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(operator_id),
        "type": TOKEN_TYPE,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def operator_id_from_token(token: str) -> UUID | None:
    """
    Verify ``token`` and return the operator id in its ``sub`` claim.

    Returns:
        The operator id, or None if the token is expired, forged, of the
        wrong type or carries no valid UUID subject
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    if claims.get("type") != TOKEN_TYPE:
        return None

    try:
        return UUID(str(claims.get("sub")))
    except ValueError:
        return None
