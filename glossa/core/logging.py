"""
Channel-Aware Structured Logging for glossa.

Semantic channels with level-based filtering:
- PIPELINE: run start/end, per-extension timing
- RESOLVE: dependency ordering, conflict findings
- EXECUTE: transform / visit / enhance phases
- MERGE: annotation merges and overwrites
- PROVIDER: data-provider lookups and cache activity
- SYSTEM: errors, warnings, status

Log Levels:
- SILENT (0): No logging
- INFO (1): Key milestones only
- VERBOSE (2): Detailed operations
- DEBUG (3): Everything

Configuration via environment:
- GLOSSA_LOG_LEVEL: Global level (silent/info/verbose/debug)
- GLOSSA_LOG_FORMAT: Output format (console/json)
- GLOSSA_LOG_CHANNELS: Comma-separated channel filter (all if not set)
"""

import logging
import os
import sys
import time
from contextvars import ContextVar
from enum import Enum, IntEnum
from typing import Any, Optional, Union

import structlog


# =============================================================================
# Enums
# =============================================================================

class LogLevel(IntEnum):
    """Log verbosity levels."""
    SILENT = 0
    INFO = 1
    VERBOSE = 2
    DEBUG = 3

    @classmethod
    def from_string(cls, s: str) -> "LogLevel":
        """Parse log level from string."""
        mapping = {
            "silent": cls.SILENT,
            "info": cls.INFO,
            "verbose": cls.VERBOSE,
            "debug": cls.DEBUG,
            # stdlib compatibility
            "warning": cls.INFO,
            "error": cls.INFO,
        }
        return mapping.get(s.lower(), cls.INFO)


class LogChannel(str, Enum):
    """Semantic log channels."""
    PIPELINE = "PIPELINE"
    RESOLVE = "RESOLVE"
    EXECUTE = "EXECUTE"
    MERGE = "MERGE"
    PROVIDER = "PROVIDER"
    SYSTEM = "SYSTEM"

    @classmethod
    def all(cls) -> list["LogChannel"]:
        return list(cls)

    @classmethod
    def from_string(cls, s: str) -> Optional["LogChannel"]:
        try:
            return cls(s.upper())
        except ValueError:
            return None


# =============================================================================
# Configuration
# =============================================================================

# Run-scoped context (run id, current extension) merged into every event
_run_context: ContextVar[dict] = ContextVar("glossa_log_context", default={})

_config = {
    "level": LogLevel.INFO,
    "format": "console",
    "channels": set(LogChannel.all()),
    "configured": False,
}


def _parse_channels(channels: list[Union[LogChannel, str]]) -> list[LogChannel]:
    parsed = []
    for ch in channels:
        if isinstance(ch, LogChannel):
            parsed.append(ch)
            continue
        channel = LogChannel.from_string(ch.strip())
        if channel:
            parsed.append(channel)
    return parsed


def configure_logging(
    level: Union[LogLevel, str, None] = None,
    format: Optional[str] = None,
    channels: Optional[list[Union[LogChannel, str]]] = None,
    force: bool = False,
) -> None:
    """
    Configure the logging system.

    Args:
        level: Log level (LogLevel enum or string)
        format: Output format ("console" or "json")
        channels: List of channels to enable (all if None)
        force: Force reconfiguration if already configured
    """
    if _config["configured"] and not force:
        return

    if level is None:
        level = LogLevel.from_string(os.environ.get("GLOSSA_LOG_LEVEL", "info"))
    elif isinstance(level, str):
        level = LogLevel.from_string(level)

    if format is None:
        format = os.environ.get("GLOSSA_LOG_FORMAT", "console")

    if channels is None:
        channels_str = os.environ.get("GLOSSA_LOG_CHANNELS", "")
        parsed = _parse_channels(channels_str.split(",")) if channels_str else []
        channels = parsed or LogChannel.all()
    else:
        channels = _parse_channels(channels)

    _config["level"] = level
    _config["format"] = format
    _config["channels"] = set(channels)

    stdlib_level = {
        LogLevel.SILENT: logging.CRITICAL + 10,
        LogLevel.INFO: logging.INFO,
        LogLevel.VERBOSE: logging.DEBUG,
        LogLevel.DEBUG: logging.DEBUG,
    }.get(level, logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=stdlib_level,
        force=True,
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _config["configured"] = True


# =============================================================================
# Channel Logger
# =============================================================================

class ChannelLogger:
    """
    A logger bound to a specific channel.

    - info(): Key milestones (level >= INFO)
    - verbose(): Detailed operations (level >= VERBOSE)
    - debug(): Everything (level >= DEBUG)
    - error() / warning(): Always logged unless SILENT
    """

    def __init__(
        self,
        channel: LogChannel,
        name: Optional[str] = None,
        extension_id: Optional[str] = None,
    ):
        self.channel = channel
        self.name = name or f"glossa.{channel.value.lower()}"
        self.extension_id = extension_id
        self._logger = structlog.get_logger(self.name)

    def _should_log(self, msg_level: LogLevel) -> bool:
        if self.channel not in _config["channels"]:
            return False
        return _config["level"] >= msg_level

    def _make_event(self, **kwargs) -> dict:
        data = {"channel": self.channel.value, **kwargs}
        if self.extension_id:
            data["extension"] = self.extension_id
        ctx = _run_context.get()
        if ctx:
            data.update(ctx)
        return data

    def info(self, event: str, **kwargs) -> None:
        if not self._should_log(LogLevel.INFO):
            return
        self._logger.info(event, **self._make_event(**kwargs))

    def verbose(self, event: str, **kwargs) -> None:
        if not self._should_log(LogLevel.VERBOSE):
            return
        self._logger.debug(event, **self._make_event(verbosity="verbose", **kwargs))

    def debug(self, event: str, **kwargs) -> None:
        if not self._should_log(LogLevel.DEBUG):
            return
        self._logger.debug(event, **self._make_event(verbosity="debug", **kwargs))

    def error(self, event: str, **kwargs) -> None:
        if _config["level"] == LogLevel.SILENT:
            return
        self._logger.error(event, **self._make_event(**kwargs))

    def warning(self, event: str, **kwargs) -> None:
        if _config["level"] == LogLevel.SILENT:
            return
        self._logger.warning(event, **self._make_event(**kwargs))

    def bind(self, **kwargs) -> "ChannelLogger":
        """Create a new logger with additional bound context."""
        new_logger = ChannelLogger(
            channel=self.channel,
            name=self.name,
            extension_id=self.extension_id,
        )
        new_logger._logger = self._logger.bind(**kwargs)
        return new_logger


# =============================================================================
# Logger Factory Functions
# =============================================================================

def get_logger(channel: Union[LogChannel, str] = LogChannel.SYSTEM) -> ChannelLogger:
    """Get a channel-specific logger."""
    configure_logging()

    if isinstance(channel, str):
        channel = LogChannel.from_string(channel) or LogChannel.SYSTEM

    return ChannelLogger(channel=channel)


def get_extension_logger(
    extension_id: str,
    channel: LogChannel = LogChannel.EXECUTE,
) -> ChannelLogger:
    """Get a logger bound to one extension (used by built-in extensions)."""
    configure_logging()
    return ChannelLogger(
        channel=channel,
        name=f"glossa.ext.{extension_id}",
        extension_id=extension_id,
    )


# =============================================================================
# Run Context Management
# =============================================================================

def bind_run_context(**kwargs) -> None:
    """Bind context that will be included in all log messages."""
    ctx = _run_context.get().copy()
    ctx.update(kwargs)
    _run_context.set(ctx)


def clear_run_context() -> None:
    _run_context.set({})


# =============================================================================
# RunLogger
# =============================================================================

class RunLogger:
    """
    Logger for one pipeline run.

    Binds the run id for all messages and times each extension.
    """

    def __init__(self, run_id: str):
        self.run_id = run_id
        self._pipeline_log = get_logger(LogChannel.PIPELINE)
        self._start = time.perf_counter()
        self._extension_starts: dict[str, float] = {}
        bind_run_context(run_id=run_id)

    def extension_start(self, extension_id: str) -> None:
        self._extension_starts[extension_id] = time.perf_counter()
        self._pipeline_log.verbose("extension_started", extension_id=extension_id)

    def extension_end(self, extension_id: str, **metrics: Any) -> float:
        """Log a successful extension and return its duration in ms."""
        duration_ms = self._elapsed_ms(extension_id)
        self._pipeline_log.info(
            "extension_completed",
            extension_id=extension_id,
            duration_ms=duration_ms,
            **metrics,
        )
        return duration_ms

    def extension_error(self, extension_id: str, error_type: str, message: str) -> float:
        """Log a failed extension and return its duration in ms."""
        duration_ms = self._elapsed_ms(extension_id)
        self._pipeline_log.error(
            "extension_failed",
            extension_id=extension_id,
            error=message,
            error_type=error_type,
            duration_ms=duration_ms,
        )
        return duration_ms

    def extension_skipped(self, extension_id: str, reason: str) -> None:
        self._pipeline_log.warning("extension_skipped", extension_id=extension_id, reason=reason)

    def run_complete(self, status: str, **metrics: Any) -> float:
        """Log run completion with summary and clear the run context."""
        total_ms = round((time.perf_counter() - self._start) * 1000, 2)
        self._pipeline_log.info(
            "run_complete",
            status=status,
            total_duration_ms=total_ms,
            **metrics,
        )
        clear_run_context()
        return total_ms

    def _elapsed_ms(self, extension_id: str) -> float:
        start = self._extension_starts.pop(extension_id, time.perf_counter())
        return round((time.perf_counter() - start) * 1000, 2)


def get_current_config() -> dict:
    """Get the current logging configuration (for testing/debugging)."""
    return {
        "level": _config["level"].name,
        "format": _config["format"],
        "channels": sorted(ch.value for ch in _config["channels"]),
    }
