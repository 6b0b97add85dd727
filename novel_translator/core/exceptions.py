"""
Exception hierarchy for the crawl and batch-translation pipeline.

Every error carries a human-readable message, an optional context dict and a
recoverable flag telling the caller whether a user retry can help.
"""

from typing import Optional, Dict, Any


class PipelineError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
        recoverable: Whether the error can potentially be recovered from
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" (context: {context_str})"
        return base


# ============================================================================
# Acquisition errors
# ============================================================================

class FetchFailure(PipelineError):
    """Raised when no relay returned usable bytes for a URL.

    Attributes:
        reason: Failure reason of the last relay tried, as plain text
        url: The requested URL
    """

    def __init__(self, reason: str, url: Optional[str] = None):
        ctx = {'url': url} if url else {}
        super().__init__(reason, ctx, recoverable=True)
        self.reason = reason
        self.url = url


class CrawlFailure(PipelineError):
    """Raised when one chapter could not be crawled. No chapter is created."""

    def __init__(self, message: str, url: Optional[str] = None, reason: Optional[str] = None):
        ctx = {}
        if url:
            ctx['url'] = url
        if reason:
            ctx['reason'] = reason
        super().__init__(message, ctx, recoverable=True)
        self.url = url
        self.reason = reason


# ============================================================================
# Batch protocol errors
# ============================================================================

class BatchDecodeEmpty(PipelineError):
    """Raised when a model response contains no usable marker pair.

    Fatal for the whole batch; every chapter in it goes to error.
    """

    def __init__(self, message: str, chapter_ids: Optional[list] = None):
        super().__init__(message, {'chapter_ids': chapter_ids} if chapter_ids else None, recoverable=True)
        self.chapter_ids = list(chapter_ids or [])


# ============================================================================
# LLM-related errors
# ============================================================================

class LLMError(PipelineError):
    """Base exception for LLM provider errors.

    Attributes:
        status_code: HTTP status returned by the provider, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = True
    ):
        ctx = context or {}
        if status_code is not None:
            ctx['status_code'] = status_code
        super().__init__(message, ctx, recoverable)
        self.status_code = status_code


class LLMConnectionError(LLMError):
    """Raised when the provider could not be reached or timed out."""
    pass


class LLMRateLimitError(LLMError):
    """Raised when the provider answers 429 Too Many Requests."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if retry_after is not None:
            ctx['retry_after'] = retry_after
        super().__init__(message, status_code=429, context=ctx)
        self.retry_after = retry_after


class QuotaExceededError(LLMError):
    """Raised when the provider reports the model quota is used up."""
    pass


class LLMAuthenticationError(LLMError):
    """Raised when authentication fails (missing/invalid API key).

    This is NOT recoverable without user intervention.
    """

    def __init__(self, message: str, status_code: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=status_code, context=context, recoverable=False)


class InvalidApiKeyError(LLMAuthenticationError):
    """Raised before any request when the API key is missing or malformed."""
    pass


class LLMResponseError(LLMError):
    """Raised when the provider response is empty or unparseable."""
    pass
