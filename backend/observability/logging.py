# backend/observability/logging.py
"""Structured logging for the feature rules backend.

Every module holds a ``get_logger("<component>")`` logger and emits
snake_case events with key/value context. ``create_app`` calls
``configure_logging`` from the LOG_LEVEL / LOG_JSON settings; calling it
again (a second app, a test) takes effect for loggers already in use.
"""


from __future__ import annotations

import logging
import sys
from typing import List, Optional, TextIO

import structlog


_SHARED_PROCESSORS: List[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _renderer(json_format: bool) -> structlog.types.Processor:
    if json_format:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Route structlog and stdlib logging to ``output`` at ``level``.

    Args:
        level: Minimum level that gets rendered.
        output: Stream the log lines are written to.
        json_format: JSON lines when True, plain console lines otherwise.
    """
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _renderer(json_format)],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        # Module-level loggers must follow later reconfiguration.
        cache_logger_on_first_use=False,
    )

    # Werkzeug and Flask log through the standard library.
    logging.basicConfig(format="%(message)s", stream=output, level=level, force=True)


def parse_level(name: Optional[str], default: int = logging.INFO) -> int:
    """Translate a level name such as ``"debug"`` into a logging level."""
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
