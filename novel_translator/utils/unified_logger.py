"""
Console and structured logging for crawling and batch translation.

Every call prints one (possibly multi-line) block to the console and hands a
structured entry to the optional UI/storage callbacks. Batch requests and
responses, progress and error details get their own layouts when their data
is supplied; anything else is a single tagged line.
"""
import os
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional


class LogLevel(Enum):
    """Log levels with priority values"""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogType(Enum):
    """What a log line is about"""
    GENERAL = "general"
    CRAWL = "crawl"
    LLM_REQUEST = "llm_request"
    LLM_RESPONSE = "llm_response"
    QUOTA = "quota"
    CHAPTER_STATUS = "chapter_status"
    PROGRESS = "progress"
    FILE_OPERATION = "file_operation"
    ERROR_DETAIL = "error_detail"


# Short tag printed in front of single-line messages
_TYPE_TAGS = {
    LogType.CRAWL: "CRAWL",
    LogType.LLM_REQUEST: "BATCH",
    LogType.LLM_RESPONSE: "BATCH",
    LogType.QUOTA: "QUOTA",
    LogType.CHAPTER_STATUS: "CHAPTER",
    LogType.PROGRESS: "QUEUE",
    LogType.FILE_OPERATION: "FILE",
}


class Colors:
    """ANSI color codes, empty when the terminal cannot show them"""
    NO_COLOR = os.environ.get('NO_COLOR') is not None or not sys.stdout.isatty()

    YELLOW = '' if NO_COLOR else '\033[93m'
    WHITE = '' if NO_COLOR else '\033[97m'
    GRAY = '' if NO_COLOR else '\033[90m'
    CYAN = '' if NO_COLOR else '\033[96m'
    GREEN = '' if NO_COLOR else '\033[92m'
    RED = '' if NO_COLOR else '\033[91m'
    ENDC = '' if NO_COLOR else '\033[0m'

    @classmethod
    def disable(cls):
        cls.YELLOW = cls.WHITE = cls.GRAY = cls.CYAN = cls.GREEN = cls.RED = cls.ENDC = ''


def _paint(color: str, text: str) -> str:
    return f"{color}{text}{Colors.ENDC}"


def _progress_bar(done: int, total: int, width: int = 30) -> str:
    ratio = done / total if total > 0 else 0.0
    filled = int(width * ratio)
    return '█' * filled + '░' * (width - filled)


class UnifiedLogger:
    """
    Logger shared by the CLI and any UI collaborator.

    Args:
        name: Logger name/identifier
        console_output: Whether to print to stdout
        enable_colors: Whether to use ANSI colors
        min_level: Entries below this level are dropped entirely
        web_callback: Receives every structured entry (e.g. a UI push)
        storage_callback: Receives every structured entry (e.g. a log buffer)
    """

    def __init__(self,
                 name: str = "novel_translator",
                 console_output: bool = True,
                 enable_colors: bool = True,
                 min_level: LogLevel = LogLevel.INFO,
                 web_callback: Optional[Callable] = None,
                 storage_callback: Optional[Callable] = None):
        self.name = name
        self.console_output = console_output
        self.enable_colors = enable_colors
        self.min_level = min_level
        self.web_callback = web_callback
        self.storage_callback = storage_callback

        if not enable_colors:
            Colors.disable()

    @property
    def verbose(self) -> bool:
        """Raw prompts and answers are only printed at DEBUG level."""
        return self.min_level == LogLevel.DEBUG

    def _stamp(self) -> str:
        return f"[{datetime.now().strftime('%H:%M:%S')}]"

    def _render(self, level: LogLevel, message: str, log_type: LogType,
                data: Dict[str, Any]) -> str:
        if log_type == LogType.LLM_REQUEST and 'chapter_ids' in data:
            return self._render_batch_request(data)
        if log_type == LogType.LLM_RESPONSE and 'requested' in data:
            return self._render_batch_response(data)
        if log_type == LogType.PROGRESS and 'total' in data:
            return self._render_progress(data)
        if log_type == LogType.ERROR_DETAIL:
            return self._render_error(message, data)
        return self._render_line(level, message, log_type, data)

    def _render_line(self, level: LogLevel, message: str, log_type: LogType,
                     data: Dict[str, Any]) -> str:
        color = {
            LogLevel.DEBUG: Colors.GRAY,
            LogLevel.WARNING: Colors.YELLOW,
            LogLevel.ERROR: Colors.RED,
            LogLevel.CRITICAL: Colors.RED,
        }.get(level, Colors.WHITE)

        parts = [self._stamp()]
        if level not in (LogLevel.INFO, LogLevel.DEBUG):
            parts.append(f"[{level.name}]")
        tag = _TYPE_TAGS.get(log_type)
        if tag:
            parts.append(f"[{tag}]")
        parts.append(message)

        line = _paint(color, ' '.join(parts))
        # Crawl lines carry the page they are about
        if log_type == LogType.CRAWL and data.get('url'):
            line += ' ' + _paint(Colors.GRAY, data['url'])
        return line

    def _render_batch_request(self, data: Dict[str, Any]) -> str:
        ids = data['chapter_ids']
        lines = [
            _paint(Colors.CYAN, '─' * 80),
            _paint(Colors.CYAN, f"{self._stamp()} Batch of {len(ids)} chapter(s) -> {data.get('model', '?')}"),
            _paint(Colors.GRAY, f"Chapters: {', '.join(ids)}"),
        ]
        user_prompt = data.get('user_prompt') or ''
        if user_prompt:
            lines.append(_paint(Colors.GRAY, f"Payload: {len(user_prompt)} chars"))
        if self.verbose:
            if data.get('system_prompt'):
                lines.append(_paint(Colors.GRAY, "[SYSTEM]"))
                lines.append(data['system_prompt'])
            if user_prompt:
                lines.append(_paint(Colors.GRAY, "[USER]"))
                lines.append(user_prompt)
        return '\n'.join(lines)

    def _render_batch_response(self, data: Dict[str, Any]) -> str:
        decoded, requested = data.get('decoded', 0), data['requested']
        color = Colors.GREEN if decoded == requested else Colors.YELLOW
        header = f"{self._stamp()} Answer: {decoded}/{requested} chapter(s) decoded"
        if 'execution_time' in data:
            header += f" in {data['execution_time']:.1f}s"
        lines = [_paint(color, header)]
        if data.get('missing'):
            lines.append(_paint(Colors.YELLOW, f"Missing: {', '.join(data['missing'])}"))
        if self.verbose and data.get('response'):
            lines.append(_paint(Colors.GRAY, "[RAW ANSWER]"))
            lines.append(data['response'])
        return '\n'.join(lines)

    def _render_progress(self, data: Dict[str, Any]) -> str:
        completed, total = data.get('completed', 0), data['total']
        percentage = completed / total * 100 if total > 0 else 0.0
        line = _paint(Colors.WHITE, f"Chapters {completed}/{total} [{_progress_bar(completed, total)}] {percentage:.1f}%")
        if data.get('failed'):
            line += ' ' + _paint(Colors.YELLOW, f"({data['failed']} failed)")
        return line

    def _render_error(self, message: str, data: Dict[str, Any]) -> str:
        lines = [_paint(Colors.RED, f"{self._stamp()} ERROR: {message}")]
        if 'details' in data:
            lines.append(_paint(Colors.RED, f"  {data['details']}"))
        if data.get('chapter_ids'):
            lines.append(_paint(Colors.RED, f"  Chapters: {', '.join(data['chapter_ids'])}"))
        return '\n'.join(lines)

    def _print(self, text: str) -> None:
        try:
            print(text, flush=True)
        except UnicodeEncodeError:
            # Legacy code pages cannot print CJK text
            print(text.encode('ascii', 'replace').decode('ascii'), flush=True)

    def log(self, level: LogLevel, message: str,
            log_type: LogType = LogType.GENERAL,
            data: Optional[Dict[str, Any]] = None):
        if level.value < self.min_level.value:
            return
        data = data or {}

        if self.console_output:
            self._print(self._render(level, message, log_type, data))

        entry = {
            'timestamp': datetime.now().isoformat(),
            'level': level.name,
            'type': log_type.value,
            'message': message,
            'data': data,
        }
        for callback in (self.web_callback, self.storage_callback):
            if callback:
                callback(entry)

    def debug(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.DEBUG, message, log_type, data)

    def info(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, log_type, data)

    def warning(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.WARNING, message, log_type, data)

    def error(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.ERROR, message, log_type, data)


_global_logger: Optional[UnifiedLogger] = None


def get_logger(name: str = "novel_translator", **kwargs) -> UnifiedLogger:
    """
    Get or create the process-wide logger.

    Later calls may swap the callbacks of the existing logger; other
    arguments only apply on creation.
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = UnifiedLogger(name, **kwargs)
    else:
        for key in ('web_callback', 'storage_callback'):
            if key in kwargs:
                setattr(_global_logger, key, kwargs[key])
    return _global_logger


def setup_cli_logger(enable_colors: bool = True) -> UnifiedLogger:
    """Configure the global logger for terminal use"""
    from novel_translator.config import DEBUG_MODE

    logger = get_logger(enable_colors=enable_colors)
    logger.console_output = True
    logger.min_level = LogLevel.DEBUG if DEBUG_MODE else LogLevel.INFO
    if not enable_colors:
        logger.enable_colors = False
        Colors.disable()
    return logger


# Module-level helpers on the global logger

def log(level: LogLevel, message: str,
        log_type: LogType = LogType.GENERAL,
        data: Optional[Dict[str, Any]] = None):
    get_logger().log(level, message, log_type, data)


def debug(message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
    log(LogLevel.DEBUG, message, log_type, data)


def info(message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
    log(LogLevel.INFO, message, log_type, data)


def warning(message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
    log(LogLevel.WARNING, message, log_type, data)


def error(message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
    log(LogLevel.ERROR, message, log_type, data)
