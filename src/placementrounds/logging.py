"""Structured logging setup and per-job log context."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import structlog


def configure_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    """Configure structlog; JSON lines by default, console rendering otherwise."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, format="%(message)s")

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


@contextmanager
def job_log_context(job_id: str, **values: Any) -> Iterator[None]:
    """Attach ``job_id`` (and any extra values) to every log event in the block."""
    with structlog.contextvars.bound_contextvars(job_id=job_id, **values):
        yield
