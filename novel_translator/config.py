"""
Centralized configuration
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

# Setup debug logger for configuration
_config_logger = logging.getLogger('config')

# Check for DEBUG_MODE early (before .env is loaded, check environment)
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)

# Get config directory (current working directory)
_env_file = Path.cwd() / '.env'

# Load .env file if it exists
_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"📁 Looking for .env at: {_env_file.absolute()}")
    _config_logger.debug(f"📁 load_dotenv() returned: {_dotenv_result}")

# Load from environment variables with defaults
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY', '')
DEFAULT_MODEL = os.getenv('DEFAULT_MODEL', 'gemini-3-flash-preview')
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '900'))
FETCH_TIMEOUT = int(os.getenv('FETCH_TIMEOUT', '30'))
TRANSLATION_TEMPERATURE = float(os.getenv('TRANSLATION_TEMPERATURE', '0.1'))
ANALYSIS_TEMPERATURE = float(os.getenv('ANALYSIS_TEMPERATURE', '0.3'))
MAX_OUTPUT_TOKENS = int(os.getenv('MAX_OUTPUT_TOKENS', '60000'))

# Scheduler limits. One in-flight batch of two chapters keeps us under the
# provider's rate limits; both are tunable but default to the safe values.
MAX_CONCURRENCY = int(os.getenv('MAX_CONCURRENCY', '1'))
BATCH_FILE_LIMIT = int(os.getenv('BATCH_FILE_LIMIT', '2'))

# Seconds a model stays unavailable after a 429
RATE_LIMIT_COOLDOWN_SECONDS = float(os.getenv('RATE_LIMIT_COOLDOWN_SECONDS', '60'))

# Keys shorter than this are rejected before any request is made
MIN_API_KEY_LENGTH = 30

OUTPUT_DIR = os.getenv('OUTPUT_DIR', 'translated_files')

# Debug mode (reload after .env is loaded)
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("="*60)
    _config_logger.debug("📋 LOADED CONFIGURATION VALUES:")
    _config_logger.debug(f"   DEFAULT_MODEL: {DEFAULT_MODEL}")
    _config_logger.debug(f"   REQUEST_TIMEOUT: {REQUEST_TIMEOUT}")
    _config_logger.debug(f"   FETCH_TIMEOUT: {FETCH_TIMEOUT}")
    _config_logger.debug(f"   MAX_CONCURRENCY: {MAX_CONCURRENCY}")
    _config_logger.debug(f"   BATCH_FILE_LIMIT: {BATCH_FILE_LIMIT}")
    _config_logger.debug(f"   GEMINI_API_KEY: {'***' + GEMINI_API_KEY[-4:] if GEMINI_API_KEY else '(not set)'}")
    _config_logger.debug("="*60)

# ============================================================================
# CRAWLING
# ============================================================================

# Relay prefixes, tried in order. The target URL is appended to each prefix.
RELAY_LIST = [
    "https://api.allorigins.win/raw?url=",
    "https://corsproxy.io/?",
    "https://api.codetabs.com/v1/proxy?quest=",
    "https://thingproxy.freeboard.io/fetch/",
]

# Charsets that force a GBK re-decode of the fetched bytes
GBK_CHARSETS = ('gbk', 'gb2312')

# Probed in order when looking for the chapter body
CONTENT_SELECTORS = [
    '#content', '#htmlContent', '#article', '#booktxt', '#chaptercontent', '#chapterContent',
    '.content', '.showtxt', '.read-content', '.chapter-content', '.post-content', '.txtnav',
    'article', 'main', '.entry-content'
]

MIN_CONTENT_LENGTH = 300
"""A body candidate must have more visible characters than this"""

MIN_LINE_LENGTH = 5
"""Lines of this length or shorter are dropped during cleanup"""

NEXT_CHAPTER_KEYWORDS = [
    "下一章", "下一页", "下一节", "next chapter", "chương sau", "chương tiếp",
    ">", "next", "下—章"
]

MAX_NEXT_LINK_TEXT_LENGTH = 15
"""Anchor text containing a keyword must be shorter than this to qualify"""

# Known boilerplate from aggregator sites. Not applied by the extractor yet.
JUNK_PHRASES = [
    "重要声明", "本站", "版权归", "All rights reserved", "最新章节", "永久地址",
    "网友发表", "来自搜索引擎", "本站立场无关", "www.", ".com", ".net", ".org",
    "点击下一页", "继续阅读", "顶点小说", "笔趣阁", "69书吧", "飘天文学", "shubao", "paoshu"
]

DEFAULT_CHAPTER_TITLE = "Chương mới"

# ============================================================================
# BATCH PROTOCOL
# ============================================================================

FILE_START_MARKER = "[[[FILE_ID: {id}]]]"
FILE_END_MARKER = "[[[FILE_END: {id}]]]"

TITLE_CANDIDATE_MAX_LENGTH = 100
"""First translated line becomes the chapter name only when shorter than this"""

ANALYSIS_SAMPLE_CHAPTERS = 3
ANALYSIS_SAMPLE_CHARS = 2000

DEFAULT_PROMPT = """Dịch truyện "{{title}}" của tác giả {{author}}.
Thể loại: {{genres}}. Bối cảnh: {{setting}}. Lưu phái: {{flow}}.
Tính cách nhân vật chính: {{personality}}.
Ngôn ngữ nguồn: {{languages}}.
Giữ văn phong tiểu thuyết, xưng hô phù hợp bối cảnh, không thêm bình luận."""

DEFAULT_DICTIONARY = """# Từ điển tên riêng: mỗi dòng một mục, dạng gốc=dịch
# Dòng bắt đầu bằng # là ghi chú"""


@dataclass
class PipelineConfig:
    """Runtime configuration shared by the CLI and library callers"""

    model: str = DEFAULT_MODEL
    gemini_api_key: str = GEMINI_API_KEY

    timeout: int = REQUEST_TIMEOUT
    fetch_timeout: int = FETCH_TIMEOUT
    temperature: float = TRANSLATION_TEMPERATURE
    max_output_tokens: int = MAX_OUTPUT_TOKENS

    max_concurrency: int = MAX_CONCURRENCY
    batch_size: int = BATCH_FILE_LIMIT
    rate_limit_cooldown: float = RATE_LIMIT_COOLDOWN_SECONDS

    output_dir: str = OUTPUT_DIR
    enable_colors: bool = True

    @classmethod
    def from_cli_args(cls, args) -> 'PipelineConfig':
        """Create config from CLI arguments"""
        return cls(
            model=getattr(args, 'model', DEFAULT_MODEL),
            gemini_api_key=getattr(args, 'gemini_api_key', GEMINI_API_KEY),
            batch_size=getattr(args, 'batch_size', BATCH_FILE_LIMIT),
            output_dir=getattr(args, 'output_dir', OUTPUT_DIR),
            enable_colors=not getattr(args, 'no_color', False),
        )

    def to_dict(self, redact_key: Optional[bool] = True) -> dict:
        """Convert to dictionary for logging/serialization"""
        key = self.gemini_api_key
        if redact_key and key:
            key = '***' + key[-4:]
        return {
            'model': self.model,
            'gemini_api_key': key,
            'timeout': self.timeout,
            'fetch_timeout': self.fetch_timeout,
            'temperature': self.temperature,
            'max_output_tokens': self.max_output_tokens,
            'max_concurrency': self.max_concurrency,
            'batch_size': self.batch_size,
            'rate_limit_cooldown': self.rate_limit_cooldown,
            'output_dir': self.output_dir,
        }
