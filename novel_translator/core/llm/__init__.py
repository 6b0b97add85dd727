"""
LLM transport: provider base class, Gemini provider and factory.
"""

from typing import Optional

from novel_translator.config import DEFAULT_MODEL, GEMINI_API_KEY
from .base import LLMProvider, LLMResponse
from .providers import GeminiProvider


def create_llm_provider(provider_type: str = "gemini",
                        api_key: Optional[str] = None,
                        model: str = DEFAULT_MODEL,
                        **kwargs) -> LLMProvider:
    """Factory function to create LLM providers"""
    if provider_type.lower() == "gemini":
        return GeminiProvider(
            api_key=api_key or GEMINI_API_KEY,
            model=model,
            client=kwargs.get("client")
        )
    raise ValueError(f"Unknown provider type: {provider_type}")


__all__ = ["LLMProvider", "LLMResponse", "GeminiProvider", "create_llm_provider"]
