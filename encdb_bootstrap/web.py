"""
aiohttp integration — run the EncDB bootstrap once on application startup.

Usage::

    app = web.Application()
    app[DB_POOL] = pool
    setup_encdb(app, EncryptionConfig(enabled=True))

Pools stored in the application state are patched by the ``on_startup``
signal, before the server accepts requests.
"""
import logging
import functools
from typing import Any, Optional
from collections.abc import Iterator

from aiohttp import web

from .adapters import AdapterRegistry, default_registry
from .orchestrator import BootstrapOrchestrator, PoolSource
from .config import EncryptionConfig

logger = logging.getLogger("encdb.bootstrap")

ENCDB_ORCHESTRATOR = web.AppKey("encdb_orchestrator", BootstrapOrchestrator)


def _label(key: Any) -> str:
    return key if isinstance(key, str) else repr(key)


def app_pools(
    app: web.Application, registry: Optional[AdapterRegistry] = None
) -> Iterator[tuple]:
    """Yield ``(name, pool)`` for application state values that look like pools.

    A value is a pool when the adapter the registry picks for it owns at
    least one of the driver, URL or properties fields.
    """
    if registry is None:
        registry = default_registry()
    for key, value in app.items():
        try:
            if registry.lookup(value).recognizes(value):
                yield _label(key), value
        except Exception as err:
            logger.warning("Cannot inspect application entry %s: %s", _label(key), err)


def _collect_pools(app: web.Application, registry: AdapterRegistry) -> list:
    return list(app_pools(app, registry))


def setup_encdb(
    app: web.Application,
    config: Optional[EncryptionConfig] = None,
    pools: Optional[PoolSource] = None,
    registry: Optional[AdapterRegistry] = None,
) -> BootstrapOrchestrator:
    """Register the EncDB bootstrap on the application's startup signal.

    Args:
        app: aiohttp application.
        config: Bootstrap configuration, read from environment if omitted.
        pools: Pools to patch, or a callable returning them. Defaults to
            the pool-like values of the application state.
        registry: Pool adapter registry.

    Returns:
        The orchestrator; its ``report`` is filled after startup.
    """
    if config is None:
        config = EncryptionConfig.from_env()
    if registry is None:
        registry = default_registry()
    if pools is None:
        pools = functools.partial(_collect_pools, app, registry)
    orchestrator = BootstrapOrchestrator(config, registry)
    app[ENCDB_ORCHESTRATOR] = orchestrator

    async def _on_startup(app: web.Application) -> None:
        # one-shot and small: the blocking artifact write runs on the loop
        orchestrator.run(pools)

    app.on_startup.append(_on_startup)
    return orchestrator
