from typing import Optional, Union

import structlog

from qsuite.config.settings import settings
from qsuite.core.exceptions import ConfigurationError, RequestValidationError, parse_request_body
from qsuite.models.schemas import (
    ActionType,
    AuthenticatedUser,
    ChatRequest,
    ChatResponse,
    ContextType,
    InteractionLogEntry,
)
from qsuite.repositories.interfaces.ai_service import IAIService
from qsuite.repositories.interfaces.auth_service import IAuthService
from qsuite.repositories.interfaces.interaction_log_repository import IInteractionLogRepository

logger = structlog.get_logger()


CHAT_SYSTEM_PROMPT = """You are a helpful AI assistant for QSuite, a test case management platform. Your role is to help users understand and effectively use QSuite's features.

QSuite features:
- File Management: upload and organize test files, scripts, documentation and artifacts
- Test Case Management: create, edit and organize test cases with categories and detailed descriptions
- Category Organization: group test cases into logical categories
- Test Execution (Run View): execute tests and track results with status updates
- Queue Management: schedule and organize test execution workflows
- AI Test Generator: generate test cases automatically from a description
- AI Chat: help and guidance on using QSuite

Best practices:
- Organize test cases using meaningful categories
- Write clear, actionable test descriptions
- Use status tracking (Not Started, In Progress, Passed, Failed, Blocked)
- Use the AI Test Generator for initial test case creation, then refine manually

Be friendly, concise and practical. For test case generation, direct users to the AI Test Generator tool rather than generating test cases in chat."""

TEST_GENERATION_NOTE = (
    "\n\nNote: The user is asking about test generation. Explain how they can use QSuite's "
    "test case creation features instead of generating actual test cases, and guide them to "
    "QSuite's built-in test case forms and AI Test Generator tool."
)

TEST_GENERATION_HINT = (
    "\n\nWant to create test cases? Use QSuite's AI Test Generator in the sidebar, "
    "or create them manually with the \"Create Test Case\" button."
)

_GENERATION_KEYWORDS = ("generate", "create test", "write test", "test case for", "test cases for", "test ideas")
_OPTIMIZATION_KEYWORDS = ("optimiz", "optimis", "improve", "flaky", "speed up", "refactor", "duplicate")


def detect_context(message: str) -> ContextType:
    """Guess the conversation context from keywords in the message"""
    text = message.lower()
    if any(keyword in text for keyword in _GENERATION_KEYWORDS):
        return ContextType.TEST_GENERATION
    if any(keyword in text for keyword in _OPTIMIZATION_KEYWORDS):
        return ContextType.TEST_OPTIMIZATION
    return ContextType.GENERAL_CHAT


class ChatService:
    """QSuite product-help assistant backed by the AI provider"""

    def __init__(
        self,
        auth_service: IAuthService,
        ai_service: IAIService,
        interaction_log: IInteractionLogRepository,
    ):
        self.auth_service = auth_service
        self.ai_service = ai_service
        self.interaction_log = interaction_log

    async def chat(self, authorization: Optional[str], request: Union[ChatRequest, bytes, str]) -> ChatResponse:
        user = await self.auth_service.authenticate(authorization)

        if not self.ai_service.is_configured:
            raise ConfigurationError(
                f"{self.ai_service.name} API key not configured",
                config_key=f"{self.ai_service.name}_api_key",
            )

        request = parse_request_body(ChatRequest, request)
        message = request.message.strip()
        if not message:
            raise RequestValidationError("Message must not be empty", field="message")

        context_type = request.context.type if request.context and request.context.type else detect_context(message)

        system_prompt = CHAT_SYSTEM_PROMPT
        if context_type == ContextType.TEST_GENERATION:
            system_prompt += TEST_GENERATION_NOTE

        reply = await self.ai_service.complete(
            system_prompt,
            message,
            temperature=settings.chat_temperature,
            top_p=settings.chat_top_p,
            max_tokens=settings.chat_max_tokens,
        )

        if context_type == ContextType.TEST_GENERATION:
            response = ChatResponse(
                content=reply + TEST_GENERATION_HINT,
                message=reply,
                action_type=ActionType.FEATURE_GUIDANCE,
            )
        else:
            response = ChatResponse(content=reply, message=reply, action_type=ActionType.PRODUCT_HELP)

        logger.info("Chat reply generated", user_id=user.id, context_type=context_type.value)
        await self._log_interaction(user, message, reply, context_type)
        return response

    async def _log_interaction(
        self, user: AuthenticatedUser, message: str, reply: str, context_type: ContextType
    ) -> None:
        try:
            await self.interaction_log.append(
                InteractionLogEntry(
                    user_id=user.id,
                    message=message,
                    response=reply,
                    context_type=context_type.value,
                )
            )
        except Exception as e:
            logger.warning("Failed to log AI interaction", user_id=user.id, error=str(e))
