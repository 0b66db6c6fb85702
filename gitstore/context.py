"""Utilities for tracing store operations in debug logs."""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


operation: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "operation", default=()
)


@contextmanager
def trace_operation(name: str, key: str | None = None) -> Generator[str, None, None]:
    """Log entry and exit of a (possibly nested) store operation.

    Yields the label of the operation, e.g. `sync_all > write_json(config.json)`.
    """
    frame = f"{name}({key})" if key else name
    stack = operation.get() + (frame,)
    token = operation.set(stack)
    label = " > ".join(stack)
    start = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield label
    finally:
        operation.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, perf_counter() - start)
