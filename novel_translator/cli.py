"""
Command-line interface: crawl chapters from the web, translate chapter files
"""
import argparse
import asyncio
import os
import sys

import aiofiles

from novel_translator.config import (
    DEFAULT_MODEL, GEMINI_API_KEY, BATCH_FILE_LIMIT, OUTPUT_DIR, PipelineConfig
)
from novel_translator.core.crawl import CrawlOrchestrator, ProxyFetcher, crawl_sequence
from novel_translator.core.events import EventBus
from novel_translator.core.exceptions import CrawlFailure, PipelineError
from novel_translator.core.ingest import load_chapters
from novel_translator.core.llm import create_llm_provider
from novel_translator.core.packaging import write_merged_text
from novel_translator.core.project_store import ProjectStore
from novel_translator.core.translation import (
    BatchTranslator, QuotaManager, TranslationScheduler, analyze_story_context
)
from novel_translator.models import ChapterStatus, Project, StoryInfo
from novel_translator.utils.file_utils import get_unique_output_path, sanitize_filename
from novel_translator.utils.unified_logger import setup_cli_logger, LogType


def _split_list(value):
    return tuple(part.strip() for part in (value or '').split(',') if part.strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="novel-translator",
        description="Crawl web-novel chapters and translate them to Vietnamese with Gemini."
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl = subparsers.add_parser("crawl", help="Download chapters by following next-chapter links.")
    crawl.add_argument("url", help="URL of the first chapter to download.")
    crawl.add_argument("-n", "--count", type=int, default=1, help="Maximum number of chapters (default: 1).")
    crawl.add_argument("-o", "--output_dir", default=OUTPUT_DIR,
                       help=f"Directory receiving one .txt file per chapter (default: {OUTPUT_DIR}).")

    translate = subparsers.add_parser("translate", help="Translate .txt chapter files or .zip archives.")
    translate.add_argument("inputs", nargs="+", help="Chapter .txt files and/or .zip archives, in reading order.")
    translate.add_argument("-o", "--output", default=None,
                           help="Merged output .txt file. Defaults to <title>.txt in the output directory.")
    translate.add_argument("--output_dir", default=OUTPUT_DIR, help=f"Output directory (default: {OUTPUT_DIR}).")
    translate.add_argument("-t", "--title", default="Untitled", help="Story title used in the prompt.")
    translate.add_argument("--author", default="", help="Story author.")
    translate.add_argument("--genres", default="", help="Comma-separated genres.")
    translate.add_argument("--languages", default="", help="Comma-separated source languages.")
    translate.add_argument("--personality", default="", help="Comma-separated traits of the main character.")
    translate.add_argument("--setting", default="", help="Comma-separated world setting tags.")
    translate.add_argument("--flow", default="", help="Comma-separated story flow tags.")
    translate.add_argument("--dictionary", default=None, help="Glossary file with one source=target entry per line.")
    translate.add_argument("--prompt", default=None, help="Prompt template file with {{variable}} placeholders.")
    translate.add_argument("--analyze", action="store_true",
                           help="Ask the model for a story summary first and send it with every batch.")
    translate.add_argument("-m", "--model", default=DEFAULT_MODEL, help=f"Gemini model (default: {DEFAULT_MODEL}).")
    translate.add_argument("--gemini_api_key", default=GEMINI_API_KEY, help="Google Gemini API key.")
    translate.add_argument("-b", "--batch_size", type=int, default=BATCH_FILE_LIMIT,
                           help=f"Chapters per request (default: {BATCH_FILE_LIMIT}).")
    return parser


async def _read_optional(path):
    if not path:
        return None
    async with aiofiles.open(path, 'r', encoding='utf-8') as f:
        return await f.read()


async def run_crawl(args, logger) -> int:
    """Crawl chapters and write each one to its own file."""
    store = ProjectStore(Project.create(StoryInfo(title="crawl")))
    orchestrator = CrawlOrchestrator(ProxyFetcher(), event_bus=EventBus())
    exit_code = 0
    try:
        await crawl_sequence(orchestrator, store, args.url, count=args.count)
    except CrawlFailure as e:
        logger.error(e.message, LogType.ERROR_DETAIL, {'details': e.reason})
        exit_code = 1
    finally:
        await orchestrator.close()

    os.makedirs(args.output_dir, exist_ok=True)
    for chapter in store.get().sorted_chapters():
        filename = f"{chapter.order_index + 1:04d} {sanitize_filename(chapter.name)}.txt"
        path = get_unique_output_path(os.path.join(args.output_dir, filename))
        async with aiofiles.open(path, 'w', encoding='utf-8') as f:
            await f.write(chapter.content)
        logger.info(f"Saved {path}", LogType.FILE_OPERATION)

    project = store.get()
    if project.last_crawl_url:
        logger.info(f"Resume from: {project.last_crawl_url}", LogType.CRAWL)
    return exit_code


async def run_translate(args, config: PipelineConfig, logger) -> int:
    """Translate chapter files and write the merged result."""
    info = StoryInfo(
        title=args.title,
        author=args.author,
        languages=_split_list(args.languages),
        genres=_split_list(args.genres),
        mc_personality=_split_list(args.personality),
        world_setting=_split_list(args.setting),
        sect_flow=_split_list(args.flow),
    )
    overrides = {}
    dictionary = await _read_optional(args.dictionary)
    if dictionary is not None:
        overrides['dictionary'] = dictionary
    prompt_template = await _read_optional(args.prompt)
    if prompt_template is not None:
        overrides['prompt_template'] = prompt_template

    chapters = await load_chapters(args.inputs)
    if not chapters:
        logger.error("No chapters found in the given files", LogType.ERROR_DETAIL)
        return 1

    store = ProjectStore(Project.create(info, chapters=tuple(chapters), **overrides))
    provider = create_llm_provider("gemini", api_key=config.gemini_api_key, model=config.model)
    quota = QuotaManager(rate_limit_cooldown=config.rate_limit_cooldown)

    try:
        if args.analyze:
            context = await analyze_story_context(store.get().sorted_chapters(), info, provider, quota)
            store.apply(lambda p: p.update(global_context=context))

        translator = BatchTranslator(provider, quota, temperature=config.temperature,
                                     max_output_tokens=config.max_output_tokens, timeout=config.timeout)
        scheduler = TranslationScheduler(store, translator,
                                         max_concurrency=config.max_concurrency,
                                         batch_size=config.batch_size,
                                         event_bus=EventBus())
        scheduler.start()
        await scheduler.run_until_idle()
    finally:
        await provider.close()

    project = store.get()
    output = args.output or os.path.join(config.output_dir, f"{sanitize_filename(info.title)}.txt")
    written = await write_merged_text(output, project.chapters)

    failed = [c for c in project.sorted_chapters() if c.status == ChapterStatus.ERROR]
    for chapter in failed:
        logger.warning(f"Not translated: {chapter.name}", LogType.CHAPTER_STATUS)
    logger.info(f"Output written to {written}", LogType.FILE_OPERATION)
    return 1 if failed else 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = PipelineConfig.from_cli_args(args)
    logger = setup_cli_logger(enable_colors=config.enable_colors)

    try:
        if args.command == "crawl":
            return asyncio.run(run_crawl(args, logger))
        if not config.gemini_api_key:
            parser.error("--gemini_api_key is required (or set GEMINI_API_KEY)")
        return asyncio.run(run_translate(args, config, logger))
    except PipelineError as e:
        logger.error(f"Failed: {e.message}", LogType.ERROR_DETAIL, {'details': str(e)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
