"""
Wiring helpers: DSN in, ready :class:`CatalogService` out.
"""

from __future__ import annotations

import os
from typing import Optional

from ..adapters import AdapterError, ConnectionConfig, create_adapter
from ..errors import StoreError
from ..persistence.store import EntityStore
from ..utils import get_logger
from . import models  # noqa: F401  registers the record kinds
from .service import CatalogService

DEFAULT_DSN = "sqlite:///:memory:"
DSN_ENV_VAR = "LIBCATALOG_DSN"

logger = get_logger("catalog.bootstrap")


def open_store(
    dsn: Optional[str] = None,
    *,
    env_var: str = DSN_ENV_VAR,
    slow_query_ms: Optional[int] = None,
) -> EntityStore:
    """
    Build and open an :class:`EntityStore` for ``dsn`` (or the DSN in
    ``env_var``, or an in-memory SQLite database) with the schema in place.
    """
    resolved = dsn or os.getenv(env_var) or DEFAULT_DSN
    try:
        config = ConnectionConfig.from_dsn(resolved)
        adapter = create_adapter(config)
    except AdapterError as exc:
        raise StoreError(f"Cannot configure store: {exc}") from exc

    store = EntityStore(adapter, config, slow_query_ms=slow_query_ms)
    store.open()
    try:
        store.ensure_schema()
    except StoreError:
        store.close()
        raise
    logger.info("Catalog store ready on %s", config.descriptive_label())
    if config.is_memory:
        logger.info("In-memory store: records are lost when it is closed.")
    return store


def open_catalog(
    dsn: Optional[str] = None,
    *,
    env_var: str = DSN_ENV_VAR,
    slow_query_ms: Optional[int] = None,
) -> CatalogService:
    return CatalogService(open_store(dsn, env_var=env_var, slow_query_ms=slow_query_ms))
