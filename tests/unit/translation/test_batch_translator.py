"""
Unit tests for the single-call batch translator.
"""
import pytest

from conftest import FakeProvider, echo_translation
from novel_translator.core.exceptions import BatchDecodeEmpty, LLMConnectionError, QuotaExceededError
from novel_translator.core.translation.batch_translator import BatchTranslator
from novel_translator.core.translation.quota_manager import QuotaManager


class TestBatchTranslator:
    """Tests for BatchTranslator.translate_batch."""

    @pytest.mark.asyncio
    async def test_success_records_quota_and_returns_model(self, project):
        provider = FakeProvider([echo_translation()], model="gemini-test")
        quota = QuotaManager()
        translator = BatchTranslator(provider, quota)

        result = await translator.translate_batch(project.sorted_chapters()[:2], project)

        assert result.results == {"c1": "VI 正文1", "c2": "VI 正文2"}
        assert result.model == "gemini-test"
        assert quota.get_state("gemini-test").request_count == 1

    @pytest.mark.asyncio
    async def test_request_parameters(self, project):
        provider = FakeProvider([echo_translation()])
        await BatchTranslator(provider).translate_batch(project.sorted_chapters()[:1], project)

        call = provider.calls[0]
        assert call['temperature'] == 0.1
        assert call['max_output_tokens'] == 60000
        assert "BẠN LÀ CHUYÊN GIA DỊCH THUẬT" in call['system_prompt']
        assert call['prompt'].startswith("[STORY_CONTEXT]\n")

    @pytest.mark.asyncio
    async def test_partial_answer(self, project):
        provider = FakeProvider([echo_translation(drop=("c2",))])
        result = await BatchTranslator(provider).translate_batch(project.sorted_chapters()[:2], project)
        assert list(result.results) == ["c1"]

    @pytest.mark.asyncio
    async def test_empty_answer_raises(self, project):
        provider = FakeProvider(["Tôi không thể dịch nội dung này."])
        quota = QuotaManager()
        with pytest.raises(BatchDecodeEmpty):
            await BatchTranslator(provider, quota).translate_batch(project.sorted_chapters()[:2], project)
        assert quota.get_state(provider.model).request_count == 0

    @pytest.mark.asyncio
    async def test_quota_failure_recorded_and_reraised(self, project):
        provider = FakeProvider([QuotaExceededError("You exceeded your current quota", status_code=429)])
        quota = QuotaManager()
        with pytest.raises(QuotaExceededError):
            await BatchTranslator(provider, quota).translate_batch(project.sorted_chapters()[:1], project)
        assert not quota.is_available(provider.model)

    @pytest.mark.asyncio
    async def test_dispatch_to_unavailable_model_still_calls(self, project):
        """Quota state is advisory only."""
        provider = FakeProvider([LLMConnectionError("down"), echo_translation()])
        quota = QuotaManager()
        quota.mark_depleted(provider.model)
        translator = BatchTranslator(provider, quota)

        with pytest.raises(LLMConnectionError):
            await translator.translate_batch(project.sorted_chapters()[:1], project)
        result = await translator.translate_batch(project.sorted_chapters()[:1], project)

        assert len(provider.calls) == 2
        assert result.results == {"c1": "VI 正文1"}
