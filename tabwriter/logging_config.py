"""Centralised structured logging setup for the TabWriter service.

Importing this module configures *structlog* with a JSON-formatted pipeline
(or a coloured console renderer when ``LOG_PRETTY=1``). Records from stdlib
loggers (uvicorn, aiohttp, openai, tenacity) are routed through the same
processor chain so everything lands in one stream with the same shape.

Other modules should call :pyfunc:`structlog.get_logger()` directly and
avoid re-configuring the library.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import structlog

__all__ = [
    "configure_logging",
    "bind_request_context",
]

# Chatty client libraries are held at WARNING unless LOG_LEVEL is DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "aiohttp.access", "urllib3")


def _renderer():
    if os.getenv("LOG_PRETTY", "0").lower() in {"1", "true", "yes"}:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(force: bool = False) -> None:
    """Setup structlog + stdlib bridging exactly once.

    Args:
        force: When True, reconfigure even if previously configured. Use only
               inside isolated scripts/tests that need a different renderer.
    """
    if getattr(structlog, "_tabwriter_configured", False) and not force:
        return

    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(),
            ],
        )
    )

    root_logger = logging.getLogger()
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    setattr(structlog, "_tabwriter_configured", True)  # type: ignore[attr-defined]


def bind_request_context(
    request_id: Optional[str] = None,
    operation: Optional[str] = None,
) -> None:
    """Bind contextual identifiers into structlog contextvars.

    Safe to call multiple times; only provided keys are updated.
    """
    payload: Dict[str, str] = {}
    if request_id:
        payload["request_id"] = request_id
    if operation:
        payload["operation"] = operation
    if payload:
        structlog.contextvars.bind_contextvars(**payload)


# Configure immediately on import so early log messages are captured.
configure_logging()
