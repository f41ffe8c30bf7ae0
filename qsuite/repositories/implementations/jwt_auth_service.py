from typing import Optional

import jwt
import structlog

from qsuite.config.settings import settings
from qsuite.core.exceptions import AuthorizationError, ConfigurationError
from qsuite.core.security import decode_access_token
from qsuite.models.schemas import AuthenticatedUser
from qsuite.repositories.interfaces.auth_service import IAuthService

logger = structlog.get_logger()


class JWTAuthService(IAuthService):
    """Resolves bearer access tokens signed with the backend's JWT secret"""

    def __init__(self, secret: Optional[str] = None, audience: Optional[str] = None):
        self.secret = secret if secret is not None else settings.jwt_secret
        self.audience = audience if audience is not None else settings.jwt_audience

    async def authenticate(self, authorization: Optional[str]) -> AuthenticatedUser:
        if not authorization or not authorization.strip():
            raise AuthorizationError("No authorization header")

        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthorizationError("Authorization header must be a bearer token")

        if not self.secret:
            raise ConfigurationError("JWT secret not configured", config_key="jwt_secret")

        try:
            payload = decode_access_token(token.strip(), self.secret, self.audience)
        except jwt.ExpiredSignatureError:
            raise AuthorizationError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected access token", error=str(e))
            raise AuthorizationError("Unauthorized")

        return AuthenticatedUser(
            id=str(payload["sub"]),
            email=payload.get("email"),
            role=payload.get("role"),
        )
