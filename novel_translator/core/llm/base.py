"""
Provider contract for the translation and analysis calls.

A provider turns one prompt into one LLMResponse with a single HTTP attempt;
failures surface as the typed LLMError family.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import httpx

from novel_translator.config import (
    REQUEST_TIMEOUT, TRANSLATION_TEMPERATURE, MAX_OUTPUT_TOKENS
)


@dataclass
class LLMResponse:
    """Response from LLM with token usage information"""
    content: str
    model: str = ""
    prompt_tokens: int = 0  # Number of tokens in the prompt
    completion_tokens: int = 0  # Number of tokens in the response
    finish_reason: Optional[str] = None

    @property
    def context_used(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class LLMProvider(ABC):
    """Abstract base class for LLM providers"""

    def __init__(self, model: str, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the LLM provider.

        Args:
            model: Model name/identifier
            client: Optional pre-configured HTTP client, closed by its owner
        """
        self.model = model
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(REQUEST_TIMEOUT)
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    @abstractmethod
    async def generate(self, prompt: str,
                       system_prompt: Optional[str] = None,
                       temperature: float = TRANSLATION_TEMPERATURE,
                       max_output_tokens: Optional[int] = MAX_OUTPUT_TOKENS,
                       timeout: int = REQUEST_TIMEOUT) -> LLMResponse:
        """
        Generate text from prompt in a single attempt.

        Args:
            prompt: The user prompt (content to process)
            system_prompt: Optional system prompt (role/instructions)
            temperature: Sampling temperature
            max_output_tokens: Output cap, or None for the provider default
            timeout: Request timeout in seconds

        Returns:
            LLMResponse with the generated text (possibly empty)

        Raises:
            LLMError: Or one of its subclasses when the call fails
        """
        pass
