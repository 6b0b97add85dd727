"""
Story-context analysis from the first chapters of a project.
"""

from typing import Optional, Sequence

from novel_translator.config import (
    ANALYSIS_SAMPLE_CHAPTERS, ANALYSIS_SAMPLE_CHARS, ANALYSIS_TEMPERATURE
)
from novel_translator.core.exceptions import LLMError, LLMResponseError
from novel_translator.core.llm.base import LLMProvider
from novel_translator.models import Chapter, StoryInfo
from novel_translator.utils.unified_logger import info, warning, LogType
from .prompt_builder import build_analysis_prompt
from .quota_manager import QuotaManager, classify_failure


async def analyze_story_context(chapters: Sequence[Chapter],
                                story_info: StoryInfo,
                                provider: LLMProvider,
                                quota: Optional[QuotaManager] = None) -> str:
    """
    Ask the model for a plot, character and glossary summary.

    The result is meant to be stored as the project's global context and sent
    with every translation batch.

    Args:
        chapters: Chapters in reading order; only the first few are sampled
        story_info: Story metadata
        provider: LLM provider
        quota: Quota tracker receiving success/failure signals

    Returns:
        Trimmed analysis text

    Raises:
        LLMResponseError: If the call failed or returned nothing
    """
    quota = quota if quota is not None else QuotaManager()
    samples = list(chapters)[:ANALYSIS_SAMPLE_CHAPTERS]
    prompt = build_analysis_prompt(samples, story_info, ANALYSIS_SAMPLE_CHARS)
    model = provider.model

    try:
        response = await provider.generate(
            prompt.user,
            system_prompt=prompt.system,
            temperature=ANALYSIS_TEMPERATURE,
            max_output_tokens=None
        )
    except LLMError as e:
        classify_failure(e, model, quota)
        warning(f"Story analysis failed: {e.message}", LogType.LLM_RESPONSE)
        raise LLMResponseError("AI did not respond", context={'model': model}) from e

    text = (response.content or '').strip()
    if not text:
        raise LLMResponseError("AI did not respond", context={'model': model})

    quota.record_success(model)
    info(f"Story analysis ready ({len(text)} chars from {len(samples)} sample chapter(s))",
         LogType.LLM_RESPONSE)
    return text
