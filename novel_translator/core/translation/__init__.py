"""
Batch translation: glossary pruning, marker codec, quota tracking, scheduling
"""
from .batch_codec import encode_batch, decode_batch, decode_batch_strict
from .batch_translator import BatchResult, BatchTranslator
from .context_analyzer import analyze_story_context
from .dictionary_pruner import prune_dictionary
from .prompt_builder import replace_prompt_variables
from .quota_manager import InMemoryQuotaStore, QuotaManager, classify_failure
from .scheduler import TranslationScheduler

__all__ = [
    'encode_batch',
    'decode_batch',
    'decode_batch_strict',
    'BatchResult',
    'BatchTranslator',
    'analyze_story_context',
    'prune_dictionary',
    'replace_prompt_variables',
    'InMemoryQuotaStore',
    'QuotaManager',
    'classify_failure',
    'TranslationScheduler',
]
