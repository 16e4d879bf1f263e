"""
Logging helpers shared by the catalog packages.

Every logger lives under the ``libcatalog`` namespace and every record carries
a correlation id, so the statements, guard decisions and outcomes produced by
one catalog request can be grouped after the fact.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterable, Iterator, Optional

from ..security.redaction import redact_params

ROOT_LOGGER = "libcatalog"
LOG_LEVEL_ENV_VAR = "LIBCATALOG_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(correlation_id)s | %(name)s | %(message)s"

_correlation_id: ContextVar[str | None] = ContextVar("libcatalog_correlation_id", default=None)


def _new_correlation_id() -> str:
    return uuid.uuid4().hex


class CorrelationIdFilter(logging.Filter):
    """Stamp ``record.correlation_id`` so formatters can always reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def resolve_log_level(level: int | str | None = None) -> int:
    """
    Explicit level first, then ``LIBCATALOG_LOG_LEVEL``, then INFO.

    Names are case-insensitive; unknown names fall back to INFO.
    """
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _install_handler() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)
    logger.setLevel(resolve_log_level())
    return logger


def configure_logging(level: int | str | None = None) -> None:
    """
    Install the ``libcatalog`` handler once and set the package log level.

    An explicit ``level`` or ``LIBCATALOG_LOG_LEVEL`` is applied on every
    call; without either, the current level is kept.
    """
    logger = _install_handler()
    if level is not None or os.getenv(LOG_LEVEL_ENV_VAR):
        logger.setLevel(resolve_log_level(level))


def get_logger(name: str) -> logging.Logger:
    _install_handler()
    logger = logging.getLogger(f"{ROOT_LOGGER}.{name}")
    # Records must carry the id before they reach any handler.
    if not any(isinstance(existing, CorrelationIdFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def set_correlation_id(value: Optional[str] = None) -> str:
    cid = value or _new_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str:
    cid = _correlation_id.get()
    if cid is None:
        cid = set_correlation_id()
    return cid


@contextmanager
def correlation_scope(value: Optional[str] = None) -> Iterator[str]:
    """
    Tag every record logged inside the block (one catalog request, say) with
    the same correlation id, restoring the previous id afterwards.
    """
    cid = value or _new_correlation_id()
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


@contextmanager
def time_call(
    name: str,
    logger: logging.Logger,
    *,
    sql: str | None = None,
    params: Iterable[Any] | None = None,
    threshold_ms: int = 100,
    on_complete: Callable[[float], None] | None = None,
) -> Iterator[None]:
    """
    Log how long the wrapped block took.

    Blocks slower than ``threshold_ms`` are logged at WARNING, the rest at
    DEBUG. ``on_complete`` receives the elapsed milliseconds, which lets the
    store feed its performance tracker without timing twice. Parameters are
    redacted before they reach the record.
    """
    safe_params = redact_params(params) if params is not None else None
    failed = False
    start = time.monotonic()
    try:
        yield
    except BaseException:
        failed = True
        raise
    finally:
        elapsed_ms = (time.monotonic() - start) * 1000
        level = logging.WARNING if elapsed_ms >= threshold_ms else logging.DEBUG
        extra = {"sql": sql, "params": safe_params, "elapsed_ms": elapsed_ms, "failed": failed}
        message = "%s failed after %.2fms" if failed else "%s took %.2fms"
        logger.log(level, message, name, elapsed_ms, extra=extra)
        if on_complete is not None:
            on_complete(elapsed_ms)
