"""structlog configuration and loader-level logging context.

Provides structured log configuration for console and JSON output with
optional file logging, plus a context manager that binds the active
loader to every log entry it emits.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


# ---------------------------------------------------------------------------
# structlog configuration
# ---------------------------------------------------------------------------


_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    log_file: str | Path | None = None,
) -> None:
    """Route structlog through stdlib handlers for one CLI invocation.

    ``fmt`` picks the console or JSON renderer. ``log_file`` adds a
    second handler next to stderr. httpx request lines only show at
    DEBUG.

    Raises:
        ValueError: If ``level`` is not a recognized log level.
    """
    level_upper = level.upper()
    if level_upper not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {sorted(_VALID_LEVELS)}"
        raise ValueError(msg)

    numeric_level = getattr(logging, level_upper)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))

    root_logger = logging.getLogger()
    # Reconfiguring replaces handlers rather than stacking them
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(
        numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
    )


# ---------------------------------------------------------------------------
# Loader logging context manager
# ---------------------------------------------------------------------------


@contextmanager
def loader_logging_context(
    loader_name: str,
    **extra: Any,
) -> Iterator[structlog.stdlib.BoundLogger]:
    """Context manager that binds loader metadata to structlog.

    Logs loader start and end, and binds the loader name to all log
    entries within the context. Both loaders run as separate asyncio
    tasks, each with its own copy of the context variables, so bindings
    never leak between them.

    Args:
        loader_name: Name of the loader (``repositories`` or ``publications``).
        **extra: Additional key-value pairs to bind.

    Yields:
        A bound structlog logger with loader context.

    Example::

        with loader_logging_context("repositories", account=account) as log:
            log.info("repositories_loaded", count=3)
    """
    structlog.contextvars.bind_contextvars(loader=loader_name, **extra)

    log: structlog.stdlib.BoundLogger = structlog.get_logger(loader_name)
    log.info("loader_start", loader=loader_name)

    try:
        yield log
    except Exception:
        log.exception("loader_error", loader=loader_name)
        raise
    finally:
        log.info("loader_end", loader=loader_name)
        structlog.contextvars.unbind_contextvars("loader", *extra.keys())
