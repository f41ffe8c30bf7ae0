from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session
import structlog
from qsuite.config.settings import settings
from qsuite.core.exceptions import ConfigurationError
from qsuite.models.schemas import AuthenticatedUser
from qsuite.repositories.interfaces.ai_service import IAIService
from qsuite.repositories.interfaces.auth_service import IAuthService
from qsuite.repositories.interfaces.interaction_log_repository import IInteractionLogRepository
from qsuite.repositories.interfaces.test_case_repository import ITestCaseRepository

from qsuite.repositories.implementations.jwt_auth_service import JWTAuthService
from qsuite.repositories.implementations.sql_interaction_log_repository import SQLInteractionLogRepository
from qsuite.repositories.implementations.sql_test_case_repository import SQLTestCaseRepository

from qsuite.services.chat_service import ChatService
from qsuite.services.generation_service import GenerationService
from qsuite.services.test_case_service import TestCaseService
from qsuite.core.database import get_database

logger = structlog.get_logger()


class Container:
    """Dependency injection container"""

    def __init__(self):
        self._ai_service = None
        self._auth_service = None

    def ai_service(self) -> IAIService:
        """Get AI provider instance (singleton), chosen by settings.ai_provider"""
        if self._ai_service is None:
            provider = settings.ai_provider.lower()
            if provider == "openai":
                from qsuite.repositories.implementations.openai_service import OpenAIService
                self._ai_service = OpenAIService()
            elif provider == "gemini":
                from qsuite.repositories.implementations.gemini_service import GeminiService
                self._ai_service = GeminiService()
            else:
                raise ConfigurationError(f"Unknown AI provider '{settings.ai_provider}'", config_key="ai_provider")
            logger.info("AI provider initialised", provider=provider)
        return self._ai_service

    def auth_service(self) -> IAuthService:
        """Get auth service instance (singleton)"""
        if self._auth_service is None:
            self._auth_service = JWTAuthService()
        return self._auth_service

    def interaction_log(self, db: Session) -> IInteractionLogRepository:
        return SQLInteractionLogRepository(db)

    def test_case_repository(self, db: Session) -> ITestCaseRepository:
        return SQLTestCaseRepository(db)


# Global container instance
container = Container()


# Dependency providers for FastAPI
def get_ai_service() -> IAIService:
    """FastAPI dependency for the AI provider"""
    return container.ai_service()


def get_auth_service() -> IAuthService:
    """FastAPI dependency for the auth service"""
    return container.auth_service()


def get_interaction_log(db: Session = Depends(get_database)) -> IInteractionLogRepository:
    return container.interaction_log(db)


def get_test_case_repository(db: Session = Depends(get_database)) -> ITestCaseRepository:
    return container.test_case_repository(db)


def get_generation_service(
    auth_service: IAuthService = Depends(get_auth_service),
    ai_service: IAIService = Depends(get_ai_service),
    interaction_log: IInteractionLogRepository = Depends(get_interaction_log),
) -> GenerationService:
    """FastAPI dependency for the generation service"""
    return GenerationService(auth_service, ai_service, interaction_log)


def get_chat_service(
    auth_service: IAuthService = Depends(get_auth_service),
    ai_service: IAIService = Depends(get_ai_service),
    interaction_log: IInteractionLogRepository = Depends(get_interaction_log),
) -> ChatService:
    """FastAPI dependency for the chat service"""
    return ChatService(auth_service, ai_service, interaction_log)


def get_test_case_service(
    repository: ITestCaseRepository = Depends(get_test_case_repository),
) -> TestCaseService:
    """FastAPI dependency for the test case service"""
    return TestCaseService(repository)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    auth_service: IAuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """FastAPI dependency resolving the bearer credential to a user"""
    return await auth_service.authenticate(authorization)
