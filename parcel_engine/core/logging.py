from __future__ import annotations

import logging
import structlog

from parcel_engine.core.config import get_settings


def configure_logging(level: str | None = None) -> None:
    level_name = (level or get_settings().log_level).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logging.basicConfig(format="%(message)s", level=log_level)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
    )


def get_logger(name: str | None = None):
    if name:
        return structlog.get_logger(component=name)
    return structlog.get_logger()
