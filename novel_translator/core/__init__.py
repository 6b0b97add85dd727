"""
Core pipeline modules

Import from the subpackages directly:

    from novel_translator.core.crawl import CrawlOrchestrator
    from novel_translator.core.translation import TranslationScheduler
"""
