import asyncio
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
import structlog

from qsuite.config.settings import settings
from qsuite.core.exceptions import ProviderError
from qsuite.repositories.interfaces.ai_service import IAIService

logger = structlog.get_logger()


class GeminiService(IAIService):
    """Google Gemini implementation of the AI provider (AI_PROVIDER=gemini)."""

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None) -> None:
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model_name = model or settings.gemini_model
        if self.api_key:
            genai.configure(api_key=self.api_key)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        top_p: float,
        max_tokens: int,
        json_output: bool = False,
    ) -> str:
        def sync_call() -> str:
            model = genai.GenerativeModel(self.model_name, system_instruction=system_prompt)
            config = genai.types.GenerationConfig(
                max_output_tokens=max_tokens,
                temperature=temperature,
                top_p=top_p,
                # Ask the model to return raw JSON, no prose
                response_mime_type="application/json" if json_output else "text/plain",
            )
            logger.info("Calling Gemini", model=self.model_name, prompt_preview=user_prompt[:200])
            try:
                response = model.generate_content(user_prompt, generation_config=config)
                text = response.text
            except google_exceptions.GoogleAPIError as e:
                logger.error("Gemini API error", error=str(e))
                raise ProviderError(f"Gemini API error: {e}", provider=self.name,
                                    provider_status=getattr(e, "code", None)) from e
            except ValueError as e:
                # response.text raises when the candidate was blocked or empty
                logger.error("Gemini returned no usable candidate", error=str(e))
                raise ProviderError("No response from Gemini", provider=self.name) from e

            text = (text or "").strip()
            if not text:
                raise ProviderError("No response from Gemini", provider=self.name)
            return text

        return await asyncio.get_event_loop().run_in_executor(None, sync_call)
