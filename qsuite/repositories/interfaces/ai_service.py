from abc import ABC, abstractmethod


class IAIService(ABC):
    """Interface for the external chat-completion provider"""

    name: str = "ai"

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider credential is available"""
        pass

    @abstractmethod
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
        """Send a system+user message pair and return the completion text.

        Raises ProviderError on any provider failure or an empty completion.
        """
        pass
