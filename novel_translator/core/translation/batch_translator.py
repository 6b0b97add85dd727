"""
One model call for a batch of chapters: prompt assembly, request, decode.
"""

import time
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from novel_translator.config import TRANSLATION_TEMPERATURE, MAX_OUTPUT_TOKENS, REQUEST_TIMEOUT
from novel_translator.core.exceptions import LLMError
from novel_translator.core.llm.base import LLMProvider
from novel_translator.models import Chapter, Project
from novel_translator.utils.unified_logger import log, warning, LogLevel, LogType
from .batch_codec import decode_batch_strict
from .prompt_builder import build_batch_prompt
from .quota_manager import QuotaManager, classify_failure


@dataclass
class BatchResult:
    """Decoded translations of one batch.

    Attributes:
        results: chapter id -> translated text, only for recovered chapters
        model: Model id that produced the answer
    """
    results: Dict[str, str]
    model: str


class BatchTranslator:
    """Translates a batch of chapters in a single provider call."""

    def __init__(self, provider: LLMProvider,
                 quota: Optional[QuotaManager] = None,
                 temperature: float = TRANSLATION_TEMPERATURE,
                 max_output_tokens: int = MAX_OUTPUT_TOKENS,
                 timeout: int = REQUEST_TIMEOUT):
        self.provider = provider
        self.quota = quota if quota is not None else QuotaManager()
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout

    @property
    def model(self) -> str:
        return self.provider.model

    async def translate_batch(self, chapters: Sequence[Chapter], project: Project) -> BatchResult:
        """
        Translate chapters with one request.

        Args:
            chapters: Chapters of the batch, already in PROCESSING state
            project: Current project snapshot supplying template, glossary and context

        Returns:
            BatchResult with every chapter whose marker pair was recovered

        Raises:
            LLMError: The call failed; quota signals are recorded first
            BatchDecodeEmpty: The answer held no usable marker pair
        """
        chapter_ids = [chapter.id for chapter in chapters]
        model = self.model
        prompt = build_batch_prompt(chapters, project)

        if not self.quota.is_available(model):
            warning(f"Dispatching to {model} although it is marked unavailable", LogType.QUOTA)

        log(LogLevel.INFO, "LLM Request", LogType.LLM_REQUEST, {
            'chapter_ids': chapter_ids,
            'model': model,
            'system_prompt': prompt.system,
            'user_prompt': prompt.user,
        })

        start_time = time.time()
        try:
            response = await self.provider.generate(
                prompt.user,
                system_prompt=prompt.system,
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                timeout=self.timeout
            )
        except LLMError as e:
            classify_failure(e, model, self.quota)
            raise

        results = decode_batch_strict(response.content, chapter_ids)
        self.quota.record_success(model)

        log(LogLevel.INFO, "LLM Response", LogType.LLM_RESPONSE, {
            'response': response.content,
            'execution_time': time.time() - start_time,
            'decoded': len(results),
            'requested': len(chapter_ids),
            'missing': [cid for cid in chapter_ids if cid not in results],
        })
        return BatchResult(results=results, model=response.model or model)
