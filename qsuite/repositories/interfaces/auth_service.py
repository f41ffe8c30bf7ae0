from abc import ABC, abstractmethod
from typing import Optional
from qsuite.models.schemas import AuthenticatedUser


class IAuthService(ABC):
    """Interface for resolving caller credentials"""

    @abstractmethod
    async def authenticate(self, authorization: Optional[str]) -> AuthenticatedUser:
        """Resolve an Authorization header value to a user.

        Raises AuthorizationError when the credential is missing or invalid.
        """
        pass
