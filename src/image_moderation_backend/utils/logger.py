"""Structured logging for the moderation service.

All modules obtain loggers through :func:`get_logger`; the lifespan calls
:func:`configure_logging` once with values from settings.
"""

import logging
import sys
import time
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor


def add_timestamp(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["timestamp"] = time.time()
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: JSON lines when True, coloured console output otherwise.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "image_moderation") -> Any:
    return structlog.get_logger(name)


class StageTimer:
    """Context manager that records elapsed milliseconds for a pipeline stage."""

    def __init__(self, stage: str, logger: Optional[Any] = None):
        self.stage = stage
        self.logger = logger or get_logger()
        self.start_time: float = 0.0
        self.elapsed_ms: float = 0.0

    def __enter__(self) -> "StageTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000.0
        if exc_type is not None:
            self.logger.warning(
                f"{self.stage} failed",
                stage=self.stage,
                duration_ms=round(self.elapsed_ms, 2),
                error=str(exc_val),
            )
        else:
            self.logger.debug(
                f"{self.stage} completed",
                stage=self.stage,
                duration_ms=round(self.elapsed_ms, 2),
            )
