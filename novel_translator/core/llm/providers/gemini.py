"""
Google Gemini provider implementation.

This module provides the GeminiProvider class for calling the Gemini
generateContent endpoint over httpx.
"""

from typing import Optional
import httpx

from novel_translator.config import (
    DEFAULT_MODEL, MIN_API_KEY_LENGTH, REQUEST_TIMEOUT,
    TRANSLATION_TEMPERATURE, MAX_OUTPUT_TOKENS
)
from novel_translator.core.exceptions import (
    InvalidApiKeyError,
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    QuotaExceededError,
)
from novel_translator.utils.unified_logger import debug, LogType
from ..base import LLMProvider, LLMResponse

API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def validate_api_key(api_key: Optional[str]) -> str:
    """
    Reject missing or obviously truncated keys before any request.

    Raises:
        InvalidApiKeyError: If the key is shorter than MIN_API_KEY_LENGTH
    """
    key = (api_key or '').strip()
    if len(key) < MIN_API_KEY_LENGTH:
        raise InvalidApiKeyError("Gemini API key is missing or invalid.")
    return key


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get('retry-after')
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class GeminiProvider(LLMProvider):
    """
    Provider for Google Gemini API.

    Every call is a single attempt: failures are raised as typed LLMError
    subclasses and retrying is left to the user.

    Example:
        >>> provider = GeminiProvider(api_key="AI...", model="gemini-3-flash-preview")
        >>> response = await provider.generate("Dịch: 你好", system_prompt="...")
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the Gemini provider.

        Args:
            api_key: Google AI API key
            model: Gemini model name
            client: Optional pre-configured HTTP client

        Raises:
            InvalidApiKeyError: If the key fails validation
        """
        super().__init__(model, client=client)
        self.api_key = validate_api_key(api_key)
        self.api_endpoint = f"{API_BASE_URL}/{model}:generateContent"

    def _build_payload(self, prompt: str, system_prompt: Optional[str],
                       temperature: float, max_output_tokens: Optional[int]) -> dict:
        generation_config = {"temperature": temperature}
        if max_output_tokens:
            generation_config["maxOutputTokens"] = max_output_tokens

        payload = {
            "contents": [{
                "role": "user",
                "parts": [{"text": prompt}]
            }],
            "generationConfig": generation_config
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    def _raise_for_status(self, response: httpx.Response):
        """Map an error answer to the matching exception."""
        status = response.status_code
        body = response.text[:500]
        message = f"Gemini API HTTP {status}: {body}"

        # A 429 that mentions quota is a depleted quota, not a burst limit
        if 'quota' in body.lower():
            raise QuotaExceededError(message, status_code=status, context={'model': self.model})
        if status == 429:
            raise LLMRateLimitError(message, retry_after=_parse_retry_after(response),
                                    context={'model': self.model})
        if status in (401, 403):
            raise LLMAuthenticationError(message, status_code=status, context={'model': self.model})
        raise LLMError(message, status_code=status, context={'model': self.model})

    @staticmethod
    def _extract_text(response_json: dict) -> tuple:
        """Concatenate the text parts of the first candidate."""
        candidates = response_json.get("candidates") or []
        if not candidates:
            return "", None
        candidate = candidates[0]
        parts = candidate.get("content", {}).get("parts", [])
        text = ''.join(part.get("text", "") for part in parts if not part.get("thought"))
        return text, candidate.get("finishReason")

    async def generate(self, prompt: str,
                       system_prompt: Optional[str] = None,
                       temperature: float = TRANSLATION_TEMPERATURE,
                       max_output_tokens: Optional[int] = MAX_OUTPUT_TOKENS,
                       timeout: int = REQUEST_TIMEOUT) -> LLMResponse:
        """
        Generate text using Gemini API.

        Returns:
            LLMResponse with content and token usage info

        Raises:
            LLMConnectionError: Network failure or timeout
            LLMRateLimitError: HTTP 429
            QuotaExceededError: Error body reports an exhausted quota
            LLMAuthenticationError: HTTP 401/403
            LLMResponseError: Body is not valid JSON
            LLMError: Any other non-2xx answer
        """
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key
        }
        payload = self._build_payload(prompt, system_prompt, temperature, max_output_tokens)

        client = await self._get_client()
        try:
            response = await client.post(
                self.api_endpoint,
                headers=headers,
                json=payload,
                timeout=timeout
            )
        except httpx.TimeoutException as e:
            raise LLMConnectionError(f"Gemini API timeout: {e}", context={'model': self.model}) from e
        except httpx.HTTPError as e:
            raise LLMConnectionError(f"Gemini API unreachable: {e}", context={'model': self.model}) from e

        if not response.is_success:
            self._raise_for_status(response)

        try:
            response_json = response.json()
        except ValueError as e:
            raise LLMResponseError("Gemini API returned invalid JSON",
                                   status_code=response.status_code,
                                   context={'model': self.model}) from e

        response_text, finish_reason = self._extract_text(response_json)
        usage_metadata = response_json.get("usageMetadata", {})
        debug(f"Gemini answered {len(response_text)} chars (finish: {finish_reason})",
              LogType.LLM_RESPONSE)

        return LLMResponse(
            content=response_text,
            model=self.model,
            prompt_tokens=usage_metadata.get("promptTokenCount", 0),
            completion_tokens=usage_metadata.get("candidatesTokenCount", 0),
            finish_reason=finish_reason
        )
