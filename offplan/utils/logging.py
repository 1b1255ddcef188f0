"""Structured logging utilities."""

import logging
import sys
from typing import Any, Mapping

import structlog


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging for the application."""

    log_level = logging.DEBUG if debug else logging.INFO

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance for the given name."""
    return structlog.get_logger(name)


class SyncLogger:
    """Specialized logger for synchronization runs."""

    def __init__(self, run_id: str, mode: str):
        self.logger = get_logger("services.sync")
        self.run_id = run_id
        self.mode = mode

    def log(self, event: str, **kwargs: Any) -> None:
        """Log a sync event."""
        self.logger.info(event, run_id=self.run_id, mode=self.mode, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        """Log a recoverable sync problem."""
        self.logger.warning(event, run_id=self.run_id, mode=self.mode, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        """Log a sync error."""
        self.logger.error(event, run_id=self.run_id, mode=self.mode, **kwargs)

    def batch_processed(self, processed: int, total: int) -> None:
        """Log batch progress."""
        self.logger.info(
            "sync_batch_processed",
            run_id=self.run_id,
            mode=self.mode,
            processed=processed,
            total=total,
        )

    def summary(self, stats: Mapping[str, Any]) -> None:
        """Log the final statistics of a run."""
        counters = {
            key: value
            for key, value in stats.items()
            if isinstance(value, Mapping)
        }
        errors = stats.get("errors") or []
        self.logger.info(
            "sync_summary",
            run_id=self.run_id,
            mode=self.mode,
            total_time_ms=stats.get("total_time_ms"),
            error_count=len(errors),
            **counters,
        )
        for message in errors:
            self.logger.warning("sync_error_recorded", run_id=self.run_id, error=message)
