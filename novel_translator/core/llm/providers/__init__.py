"""
LLM provider implementations.
"""

from .gemini import GeminiProvider, validate_api_key

__all__ = ["GeminiProvider", "validate_api_key"]
