"""
Unit tests for the exception hierarchy.
"""
from novel_translator.core.exceptions import (
    BatchDecodeEmpty, CrawlFailure, FetchFailure, InvalidApiKeyError, LLMAuthenticationError,
    LLMError, LLMRateLimitError, PipelineError, QuotaExceededError
)


class TestExceptions:
    """Tests for messages, context and recoverability."""

    def test_str_includes_context(self):
        error = FetchFailure("HTTP 503", url="https://a.test/1")
        assert str(error) == "FetchFailure: HTTP 503 (context: url=https://a.test/1)"
        assert error.reason == "HTTP 503"
        assert error.recoverable

    def test_crawl_failure(self):
        error = CrawlFailure("Could not crawl", url="u", reason="timeout")
        assert error.context == {'url': 'u', 'reason': 'timeout'}
        assert isinstance(error, PipelineError)

    def test_rate_limit_carries_status(self):
        error = LLMRateLimitError("slow down", retry_after=3.0)
        assert error.status_code == 429
        assert error.retry_after == 3.0
        assert error.context['retry_after'] == 3.0

    def test_quota_is_llm_error(self):
        error = QuotaExceededError("quota", status_code=429)
        assert isinstance(error, LLMError)
        assert error.recoverable

    def test_authentication_not_recoverable(self):
        assert not LLMAuthenticationError("denied", status_code=401).recoverable
        assert isinstance(InvalidApiKeyError("bad key"), LLMAuthenticationError)

    def test_batch_decode_empty(self):
        error = BatchDecodeEmpty("no markers", chapter_ids=["a", "b"])
        assert error.chapter_ids == ["a", "b"]
        assert BatchDecodeEmpty("no markers").context == {}
