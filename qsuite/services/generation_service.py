import json
from typing import Optional, Union

import structlog

from qsuite.config.settings import settings
from qsuite.core.exceptions import ConfigurationError, RequestValidationError, parse_request_body
from qsuite.models.schemas import (
    AuthenticatedUser,
    ContextType,
    GenerateTestsRequest,
    GenerateTestsResponse,
    InteractionLogEntry,
)
from qsuite.repositories.interfaces.ai_service import IAIService
from qsuite.repositories.interfaces.auth_service import IAuthService
from qsuite.repositories.interfaces.interaction_log_repository import IInteractionLogRepository
from qsuite.services.normalizer import normalize_response

logger = structlog.get_logger()


GENERATION_SYSTEM_PROMPT = """You are an expert QA engineer. Generate test cases as a JSON object.

RESPOND WITH ONLY THIS JSON FORMAT:
{
  "testCases": [
    {
      "name": "Test Case Name",
      "description": "What this test validates",
      "scenarios": ["Step 1", "Step 2", "Step 3"],
      "category": "Functional",
      "tags": ["tag1", "tag2"]
    }
  ]
}

Requirements:
- Generate 2-4 test cases in the testCases array
- Each test case needs: name, description, scenarios (array), category, tags
- Make scenarios specific and actionable
- No extra text, just the JSON object

IMPORTANT: Return ONLY the JSON object with testCases array."""


class GenerationService:
    """AI test case generation: authenticate, prompt the provider, normalize, log"""

    def __init__(
        self,
        auth_service: IAuthService,
        ai_service: IAIService,
        interaction_log: IInteractionLogRepository,
    ):
        self.auth_service = auth_service
        self.ai_service = ai_service
        self.interaction_log = interaction_log

    async def generate(
        self, authorization: Optional[str], request: Union[GenerateTestsRequest, bytes, str]
    ) -> GenerateTestsResponse:
        """Generate normalized test cases for the caller's requirements.

        Checks run in order (credential, provider key, request body, requirements) and each
        failure aborts before the provider is called. Provider failures surface as
        ProviderError without retry; malformed provider text never fails the call.
        """
        user = await self.auth_service.authenticate(authorization)

        if not self.ai_service.is_configured:
            raise ConfigurationError(
                f"{self.ai_service.name} API key not configured",
                config_key=f"{self.ai_service.name}_api_key",
            )

        request = parse_request_body(GenerateTestsRequest, request)
        requirements = request.requirements.strip()
        if not requirements:
            raise RequestValidationError("Requirements must not be empty", field="requirements")

        logger.info("Generating test cases", user_id=user.id, requirements=requirements[:100])

        raw = await self.ai_service.complete(
            GENERATION_SYSTEM_PROMPT,
            self._build_user_prompt(requirements, request),
            temperature=settings.generation_temperature,
            top_p=settings.generation_top_p,
            max_tokens=settings.generation_max_tokens,
            json_output=True,
        )

        result = normalize_response(raw)
        test_cases = result.test_cases
        logger.info(
            "Generation completed",
            user_id=user.id,
            count=len(test_cases),
            outcome=type(result).__name__,
            degraded=result.degraded,
        )

        await self._log_interaction(user, requirements, json.dumps([tc.model_dump() for tc in test_cases]))

        return GenerateTestsResponse(
            success=True,
            test_cases=test_cases,
            count=len(test_cases),
            degraded=result.degraded,
        )

    def _build_user_prompt(self, requirements: str, request: GenerateTestsRequest) -> str:
        prompt = f"Generate test cases for: {requirements}"
        context = request.context
        if context and context.file_id is not None:
            prompt += f"\n\nRelated file id: {context.file_id}"
        if context and context.format:
            prompt += f"\nPreferred format: {context.format}"
        return prompt

    async def _log_interaction(self, user: AuthenticatedUser, message: str, response: str) -> None:
        # Logging is best-effort and must never fail the request
        try:
            await self.interaction_log.append(
                InteractionLogEntry(
                    user_id=user.id,
                    message=message,
                    response=response,
                    context_type=ContextType.TEST_GENERATION.value,
                )
            )
        except Exception as e:
            logger.warning("Failed to log AI interaction", user_id=user.id, error=str(e))
