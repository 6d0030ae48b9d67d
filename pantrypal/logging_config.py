# PantryPal - Household Inventory Client
# Copyright (C) 2026 PantryPal Authors
# SPDX-License-Identifier: Apache-2.0

"""structlog setup for the PantryPal client.

Modules keep using ``logging.getLogger("pantrypal.<area>")``; records are
rendered by structlog (console) and, when a log directory is given, written
as JSON lines to ``pantrypal.log``.  The request id bound by the API client
is attached to every record logged while that request is running.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import orjson
import structlog

LOG_FILE_NAME = "pantrypal.log"
_QUIET_LOGGERS = ("httpx", "httpcore", "keyring")


def set_request_id(request_id: str) -> None:
    structlog.contextvars.bind_contextvars(request_id=request_id)


def _dumps(obj: object, **_kw) -> str:  # noqa: ANN003
    return orjson.dumps(obj).decode("utf-8")


def _formatter(
    renderer: structlog.types.Processor, pre_chain: list,
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=pre_chain,
    )


def setup_logging(level: str = "INFO", log_dir: Path | None = None) -> None:
    """Route all client logging through structlog.

    Args:
        level: Root level name; unknown names fall back to INFO.
        log_dir: Where to keep the rotating JSON log.  ``None`` logs to the
            console only.
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(_formatter(structlog.dev.ConsoleRenderer(), pre_chain))
    root.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=2 * 1024 * 1024,
            backupCount=2,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            _formatter(structlog.processors.JSONRenderer(serializer=_dumps), pre_chain),
        )
        root.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
