"""structlog setup used by the API server and the relay entry points."""

from __future__ import annotations

import structlog

CONSOLE_FORMATS = ("text", "console")


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog.

    ``fmt`` is ``json`` for one JSON object per line, or ``text``/``console``
    for the coloured development renderer.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if fmt in CONSOLE_FORMATS:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            structlog.get_level_from_name(level.lower())
        ),
        cache_logger_on_first_use=True,
    )
