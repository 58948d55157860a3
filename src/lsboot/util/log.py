"""Structured logging with tagged loggers, console and file sinks.

Loggers are cached per ``service`` tag. Each record is rendered by the layout
selected with ``Log.configure(format=...)``: ``kv`` pairs (the default), one
JSON object per line, or ``pretty`` for reading on a terminal. The CLI picks
the layout from ``--log-format`` or ``LSBOOT_LOG_FORMAT``.
"""

import json
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TextIO

from ..core.global_paths import GlobalPath

KEEP_LOG_FILES = 10


class LogLevel(str, Enum):
    """Log severity levels, lowest first."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: str | None) -> "LogLevel":
        if value is None:
            return cls.INFO
        text = value.strip().upper()
        if text == "WARNING":
            text = "WARN"
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid log level: {value}") from None

    @property
    def rank(self) -> int:
        return list(LogLevel).index(self)


class LogFormat(str, Enum):
    KV = "kv"
    JSON = "json"
    PRETTY = "pretty"

    @classmethod
    def parse(cls, value: str | None) -> "LogFormat":
        if value is None:
            return cls.KV
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(f.value for f in cls)
            raise ValueError(f"invalid log format: {value} (expected one of {choices})") from None


@dataclass
class LogConfig:
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.KV
    console: bool = False
    file: bool = False
    log_file_path: Optional[str] = None
    _file_handle: Optional[TextIO] = None


_config = LogConfig()


def _describe_error(error: BaseException) -> str:
    """Render an exception with its ``raise ... from`` chain on one line."""
    parts = []
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(str(current) or type(current).__name__)
        current = current.__cause__
    return " Caused by: ".join(parts)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseException):
        return _describe_error(value)
    if isinstance(value, Path):
        return str(value)
    if value is None or isinstance(value, (str, dict, list, tuple, int, float, bool)):
        return value
    return str(value)


def _kv_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    text = str(value)
    if not text or "=" in text or any(ch.isspace() for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def _kv_pairs(fields: Dict[str, Any]) -> str:
    return " ".join(f"{key}={_kv_value(value)}" for key, value in fields.items())


def _render_kv(stamp: str, level: LogLevel, message: Any, fields: Dict[str, Any]) -> str:
    head = f"{stamp} level={level.value.lower()} msg={_kv_value(message)}"
    return f"{head} {_kv_pairs(fields)}" if fields else head


def _render_json(stamp: str, level: LogLevel, message: Any, fields: Dict[str, Any]) -> str:
    record = {"time": stamp, "level": level.value.lower(), "msg": message, **fields}
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def _render_pretty(stamp: str, level: LogLevel, message: Any, fields: Dict[str, Any]) -> str:
    # service first so lines from one component line up
    service = fields.pop("service", None)
    head = f"{stamp} {level.value:<5} [{service or '-'}] {message}"
    return f"{head} ({_kv_pairs(fields)})" if fields else head


_RENDERERS: Dict[LogFormat, Callable[[str, LogLevel, Any, Dict[str, Any]], str]] = {
    LogFormat.KV: _render_kv,
    LogFormat.JSON: _render_json,
    LogFormat.PRETTY: _render_pretty,
}


class Logger:
    """Structured logger carrying a fixed set of tags."""

    def __init__(self, tags: Optional[Dict[str, Any]] = None):
        self.tags = tags or {}

    def render(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]] = None) -> str:
        fields = {
            key: _jsonable(value)
            for key, value in {**self.tags, **(extra or {})}.items()
            if value is not None
        }
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        return _RENDERERS[_config.format](stamp, level, _jsonable(message), fields) + "\n"

    def log(self, level: LogLevel, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        if level.rank < _config.level.rank:
            return
        line = self.render(level, message, extra)
        if _config.console:
            sys.stderr.write(line)
            sys.stderr.flush()
        if _config.file and _config._file_handle:
            _config._file_handle.write(line)
            _config._file_handle.flush()

    def debug(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.DEBUG, message, extra)

    def info(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.INFO, message, extra)

    def warn(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.WARN, message, extra)

    def error(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.ERROR, message, extra)

    @contextmanager
    def time(self, message: str, extra: Optional[Dict[str, Any]] = None) -> Iterator[None]:
        """Log ``message`` when the block starts and again with its duration in ms."""
        extra = extra or {}
        self.info(message, {**extra, "status": "started"})
        start = time.monotonic()
        try:
            yield
        finally:
            duration = int((time.monotonic() - start) * 1000)
            self.info(message, {**extra, "status": "completed", "duration": duration})


class Log:
    """Global logging interface and factory."""

    _loggers: Dict[str, Logger] = {}

    @classmethod
    def create(cls, tags: Optional[Dict[str, Any]] = None) -> Logger:
        """Create or retrieve a logger; loggers with a ``service`` tag are cached."""
        tags = tags or {}
        service = tags.get("service")
        if not isinstance(service, str) or not service:
            return Logger(tags=tags)
        if service not in cls._loggers:
            cls._loggers[service] = Logger(tags=tags)
        return cls._loggers[service]

    @classmethod
    def configure(
        cls,
        *,
        level: LogLevel | None = None,
        format: LogFormat | None = None,
        console: bool | None = None,
        file: bool | None = None,
    ) -> None:
        """Configure logging sinks and output layout.

        Args:
            level: Minimum level to emit.
            format: Record layout.
            console: Write to stderr.
            file: Write to a fresh ``lsboot-<timestamp>.log`` under
                ``GlobalPath.log()``; only the newest files are kept.
        """
        if level is not None:
            _config.level = level
        if format is not None:
            _config.format = format
        if console is not None:
            _config.console = console
        if file is not None:
            _config.file = file

        cls.close()
        _config.log_file_path = None
        if not _config.file:
            return

        log_dir = Path(GlobalPath.log())
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        log_path = log_dir / f"lsboot-{stamp}.log"
        _config._file_handle = log_path.open("w", encoding="utf-8")
        _config.log_file_path = str(log_path)
        _prune_logs(log_dir, keep=log_path)

    @classmethod
    def file(cls) -> Optional[str]:
        """Path of the current log file, or None when file logging is off."""
        return _config.log_file_path

    @classmethod
    def close(cls) -> None:
        if _config._file_handle:
            _config._file_handle.close()
            _config._file_handle = None


def _prune_logs(log_dir: Path, keep: Path) -> None:
    old = sorted(
        (p for p in log_dir.glob("lsboot-*.log") if p != keep),
        key=lambda p: p.name,
    )
    for path in old[: max(len(old) - (KEEP_LOG_FILES - 1), 0)]:
        path.unlink(missing_ok=True)
