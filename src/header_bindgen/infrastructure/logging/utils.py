"""Logger lookup and the timing decorator used on pipeline stages."""

import logging
from collections.abc import Callable
from functools import wraps
from time import perf_counter
from typing import Any, TypeVar, cast

F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module; pass ``__name__``."""
    return logging.getLogger(name)


def log_timing(func: F) -> F:
    """Log how long a pipeline stage takes.

    Completion is logged at DEBUG. A stage that raises is logged at ERROR
    with the exception type and the exception is propagated unchanged.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger(func.__module__)
        stage = func.__qualname__
        logger.debug(f"{stage}: started")
        started = perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{stage}: {type(e).__name__} after {perf_counter() - started:.3f}s: {e}")
            raise
        logger.debug(f"{stage}: finished in {perf_counter() - started:.3f}s")
        return result

    return cast("F", wrapper)
