"""Timing and outcome logs for engine operations that cross an I/O boundary."""

from __future__ import annotations

import contextlib
import logging
import time
from functools import wraps
from typing import Callable, Dict, Iterator, ParamSpec, TypeVar

from fitmatch_app.logging_config import ensure_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


@contextlib.contextmanager
def timed_operation(operation: str, **fields: object) -> Iterator[Dict[str, object]]:
    """Log start and completion of ``operation``; failures are logged and re-raised.

    The yielded dict is merged into the completion event, so callers can
    attach outcome fields (counts, reasons) once they are known.
    """

    correlation_id = ensure_correlation_id()
    outcome: Dict[str, object] = {}
    started = time.perf_counter()
    log_event(LOGGER, logging.DEBUG, "operation_call_started", operation=operation, correlation_id=correlation_id, **fields)
    try:
        yield outcome
    except Exception as exc:
        log_event(
            LOGGER,
            logging.ERROR,
            "operation_call_failed",
            operation=operation,
            correlation_id=correlation_id,
            duration_ms=_elapsed_ms(started),
            error_type=type(exc).__name__,
            exc_info=True,
        )
        raise
    log_event(
        LOGGER,
        logging.INFO,
        "operation_call_completed",
        operation=operation,
        correlation_id=correlation_id,
        duration_ms=_elapsed_ms(started),
        **outcome,
    )


def instrument_operation(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator form of :func:`timed_operation`."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with timed_operation(operation, keyword_args=sorted(kwargs)):
                return func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = ["instrument_operation", "timed_operation"]
