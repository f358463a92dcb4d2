"""
Logging for jobsync.

One StructuredLogger per process (see get_logger) writes to stderr and to a
daily file under logs/. Keyword context is appended to the message as
key=value pairs. The logger also counts fetches per fetch mode ("direct" or
"github") so a refresh can end with a one-screen summary.
"""

import json
import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_context(context: Dict[str, Any]) -> str:
    """
    Render keyword context as ``key=value`` pairs.

    Strings are written bare unless they contain whitespace; everything else
    is JSON (non-ASCII kept readable, unknown types via str()).
    """
    parts = []
    for key, value in context.items():
        if isinstance(value, str) and value and not any(c.isspace() for c in value):
            rendered = value
        else:
            rendered = json.dumps(value, ensure_ascii=False, default=str)
        parts.append(f"{key}={rendered}")
    return " ".join(parts)


@dataclass
class ModeStats:
    attempts: int = 0
    successes: int = 0

    @property
    def success_rate(self) -> float:
        return round(self.successes / self.attempts, 3) if self.attempts else 0.0


@dataclass
class FetchMetrics:
    """Counters for one fetch session."""

    api_calls: int = 0
    attempted: int = 0
    successful: int = 0
    failed: int = 0
    errors: Counter = field(default_factory=Counter)
    modes: Dict[str, ModeStats] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "api_calls": self.api_calls,
            "fetches_attempted": self.attempted,
            "fetches_successful": self.successful,
            "fetches_failed": self.failed,
            "errors_by_type": dict(self.errors),
            "mode_success_rate": {
                mode: {
                    "attempts": stats.attempts,
                    "successes": stats.successes,
                    "success_rate": stats.success_rate,
                }
                for mode, stats in self.modes.items()
            },
        }

    def summary_lines(self) -> List[str]:
        overall = round(self.successful / self.attempted * 100, 1) if self.attempted else 0.0
        lines = [
            f"Fetch summary: {self.successful}/{self.attempted} sources fetched "
            f"({overall}% success), {self.api_calls} HTTP requests"
        ]
        for mode, stats in self.modes.items():
            lines.append(
                f"  {mode} mode: {stats.successes}/{stats.attempts} ({stats.success_rate * 100:.1f}%)"
            )
        if self.errors:
            errors = ", ".join(f"{name}={count}" for name, count in self.errors.most_common())
            lines.append(f"  failures by error: {errors}")
        return lines


class StructuredLogger:
    """
    Console and file logger with fetch metrics.

    Args:
        name: Logger name
        level: Console log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files (default: logs/)
        enable_file: Write jobsync_YYYYMMDD.log, always at DEBUG
        enable_console: Write to stderr, keeping stdout for command output
    """

    def __init__(
        self,
        name: str = "jobsync",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.fetch_metrics = FetchMetrics()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_handler.setFormatter(logging.Formatter(fmt=LINE_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(console_handler)

        if enable_file:
            log_dir = Path(log_dir) if log_dir is not None else Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobsync_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(fmt=FILE_LINE_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, context)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} [{format_context(context)}]"
        self.logger.log(level, message)

    # Fetch metrics

    @property
    def metrics(self) -> Dict[str, Any]:
        return self.fetch_metrics.as_dict()

    def record_api_call(self):
        self.fetch_metrics.api_calls += 1

    def record_fetch_attempt(self, mode: str):
        self.fetch_metrics.attempted += 1
        self.fetch_metrics.modes.setdefault(mode, ModeStats()).attempts += 1

    def record_fetch_success(self, mode: str):
        self.fetch_metrics.successful += 1
        if mode in self.fetch_metrics.modes:
            self.fetch_metrics.modes[mode].successes += 1

    def record_fetch_failure(self, mode: str, error_type: str):
        self.fetch_metrics.failed += 1
        self.fetch_metrics.errors[error_type] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Snapshot of the counters as plain dicts."""
        return self.fetch_metrics.as_dict()

    def log_metrics_summary(self):
        for line in self.fetch_metrics.summary_lines():
            self.info(line)


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "jobsync", level: str = "INFO", **kwargs) -> StructuredLogger:
    """
    Get or create the process-wide logger.

    Arguments only apply on first creation; call reset_logger() to reconfigure.
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    global _global_logger
    _global_logger = None
