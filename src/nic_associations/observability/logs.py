"""structlog setup shared by the CLI."""

from __future__ import annotations

import logging
from typing import Any

import structlog


def configure_logging(level: str = "info", json_output: bool = False) -> None:
    """Route structlog through stdlib logging with console or JSON rendering."""
    logging.basicConfig(format="%(message)s", level=level.upper())

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
