"""Logging setup for the server and the indexer.

Console output always goes to stderr; stdout carries JSON-RPC frames when the
server runs over stdio. Context passed to a ``StructuredLogger`` travels on
the record as ``ctx_<key>`` attributes and is rendered by both formatters.
"""

from __future__ import annotations
import logging
import sys
import json
from typing import Any, Dict, MutableMapping, Optional, Tuple
from datetime import datetime, timezone
from pathlib import Path

CONTEXT_PREFIX = "ctx_"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("urllib3", "charset_normalizer", "trafilatura", "htmldate", "courlan")

# Keyword arguments Logger._log understands; everything else is context
_LOG_KWARGS = {"exc_info", "stack_info", "stacklevel", "extra"}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Context fields attached to ``record`` by a ``StructuredLogger``."""
    return {
        key[len(CONTEXT_PREFIX):]: value
        for key, value in record.__dict__.items()
        if key.startswith(CONTEXT_PREFIX)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shipping and the log file."""

    def __init__(self, service_name: str = "datatables-mcp"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        context = record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """``time | LEVEL | logger | message key=value`` with ANSI level colors."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt='%Y-%m-%d %H:%M:%S')
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        line = " | ".join([
            self.formatTime(record, self.datefmt),
            f"{record.levelname:8}",
            record.name,
            record.getMessage(),
        ])
        context = record_context(record)
        if context:
            line += " " + " ".join(f"{key}={value}" for key, value in context.items())

        color = self.COLORS.get(record.levelname) if self.use_colors else None
        if color:
            line = f"{color}{line}{self.RESET}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _console_handler(use_json: bool, use_colors: Optional[bool], service_name: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if use_json:
        handler.setFormatter(JSONFormatter(service_name))
    else:
        if use_colors is None:
            use_colors = sys.stderr.isatty()
        handler.setFormatter(ColoredFormatter(use_colors))
    return handler


def _file_handler(log_file: str, service_name: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(JSONFormatter(service_name))
    return handler


def setup_logging(
    level: str = "INFO",
    service_name: str = "datatables-mcp",
    log_file: Optional[str] = None,
    use_json: bool = False,
    use_colors: Optional[bool] = None
) -> None:
    """Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Service name written into JSON records
        log_file: Optional path; the file always receives JSON records
        use_json: Write JSON instead of colored text to stderr
        use_colors: Color console output; defaults to whether stderr is a TTY
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handlers = [_console_handler(use_json, use_colors, service_name)]
    if log_file:
        handlers.append(_file_handler(log_file, service_name))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter taking context as keyword arguments.

    ``log.info("Indexed page", url=url)`` stores ``url`` as ``ctx_url`` on the
    record, merged over the context given at construction.
    """

    def __init__(self, name: str, **default_context):
        super().__init__(logging.getLogger(name), default_context)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        context = dict(self.extra or {})
        for key in list(kwargs):
            if key not in _LOG_KWARGS:
                context[key] = kwargs.pop(key)

        extra = dict(kwargs.get("extra") or {})
        extra.update({f"{CONTEXT_PREFIX}{key}": value for key, value in context.items()})
        kwargs["extra"] = extra
        return msg, kwargs


def get_structured_logger(name: str, **default_context) -> StructuredLogger:
    return StructuredLogger(name, **default_context)
