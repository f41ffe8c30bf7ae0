import asyncio
from typing import Optional

import openai
from openai import OpenAI
import structlog

from qsuite.config.settings import settings
from qsuite.core.exceptions import ProviderError
from qsuite.repositories.interfaces.ai_service import IAIService

logger = structlog.get_logger()


class OpenAIService(IAIService):
    """OpenAI chat completions implementation of the AI provider"""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = base_url or settings.openai_base_url
        self.model = model or settings.openai_model
        self._client: Optional[OpenAI] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> OpenAI:
        # The SDK refuses to construct without a key, so build on first use
        if self._client is None:
            self._client = OpenAI(base_url=self.base_url, api_key=self.api_key)
        return self._client

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
        """Run a chat completion (async wrapper around the sync SDK)"""
        def sync_call() -> str:
            params = {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": temperature,
                "top_p": top_p,
                "max_tokens": max_tokens,
            }
            if json_output:
                params["response_format"] = {"type": "json_object"}

            logger.info("Calling OpenAI chat completion", model=self.model, prompt_preview=user_prompt[:200])
            try:
                response = self.client.chat.completions.create(**params)
            except openai.APIStatusError as e:
                logger.error("OpenAI API error", status_code=e.status_code, error=e.message)
                raise ProviderError(
                    f"OpenAI API error: {e.message or 'Unknown error'}",
                    provider=self.name,
                    provider_status=e.status_code,
                ) from e
            except openai.APIError as e:
                logger.error("OpenAI request failed", error=str(e))
                raise ProviderError(f"OpenAI API error: {e}", provider=self.name) from e

            content = ""
            if response.choices:
                content = (response.choices[0].message.content or "").strip()
            if not content:
                raise ProviderError("No response from OpenAI", provider=self.name)

            logger.info("OpenAI response received", length=len(content))
            return content

        return await asyncio.get_event_loop().run_in_executor(None, sync_call)
