"""
JWT access token helpers.

Access tokens are issued by the backend that handles sign-in; QSuite only verifies
them. ``create_access_token`` exists for local development and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from qsuite.config.settings import settings


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    secret: Optional[str] = None,
    expires_minutes: Optional[int] = None,
    audience: Optional[str] = None,
) -> str:
    """Create a signed access token for ``user_id``"""
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    now = datetime.now(timezone.utc)

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    if email:
        payload["email"] = email
    aud = audience if audience is not None else settings.jwt_audience
    if aud:
        payload["aud"] = aud

    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, secret: str, audience: Optional[str] = None) -> Dict[str, Any]:
    """Verify signature, expiry and (optionally) audience; raises jwt.InvalidTokenError"""
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.jwt_algorithm],
        audience=audience or None,
        options={"verify_aud": bool(audience), "require": ["sub", "exp"]},
    )
