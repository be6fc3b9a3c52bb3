"""
Bootstrap Orchestrator — One-shot EncDB retrofit of a running process.

Provisions the master key artifact, then patches every connection pool the
host enumerates, in order. Runs at most once per orchestrator; every
failure is logged and recorded in the returned ``BootstrapReport`` and
nothing is raised to the host's startup sequence.
"""
import logging
from enum import Enum
from typing import Any, Optional, Union
from collections.abc import Callable, Iterable, Iterator, Mapping

import orjson
from pydantic import BaseModel

from .adapters import AdapterRegistry, default_registry
from .config import EncryptionConfig
from .patcher import PoolReport, patch_pool
from .secret import ProvisionResult, provision

logger = logging.getLogger("encdb.bootstrap")

PoolSource = Union[
    Callable[[], Any],
    Mapping[str, Any],
    Iterable[Any],
]


class BootstrapState(str, Enum):
    NOT_STARTED = "not_started"
    PROVISIONING = "provisioning"
    PATCHING = "patching"
    DONE = "done"


class BootstrapReport(BaseModel):
    """What a bootstrap run did: provisioning result and per-pool outcomes."""

    enabled: bool = True
    provision: Optional[ProvisionResult] = None
    provision_error: Optional[str] = None
    pools: list[PoolReport] = []
    error: Optional[str] = None

    @property
    def failed(self) -> int:
        return sum(1 for p in self.pools if p.failed)

    @property
    def patched(self) -> int:
        return sum(1 for p in self.pools if p.patched and not p.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for p in self.pools if not p.patched and not p.failed)

    def summary(self) -> dict:
        return {
            "enabled": self.enabled,
            "provisioned": (
                self.provision.status.value if self.provision else None
            ),
            "provision_error": self.provision_error,
            "pools": len(self.pools),
            "patched": self.patched,
            "skipped": self.skipped,
            "failed": self.failed,
        }

    def to_json(self) -> bytes:
        """Serialize the full report with orjson."""
        payload = self.model_dump(mode="json")
        payload["summary"] = self.summary()
        return orjson.dumps(payload)


def iter_pools(pools: Union[Mapping[str, Any], Iterable[Any]]) -> Iterator[tuple]:
    """Normalize a pool enumeration into ``(name, pool)`` pairs.

    Accepts a mapping of name to pool, an iterable of ``(name, pool)``
    pairs, or an iterable of bare pool objects (named ``None``).
    """
    if isinstance(pools, Mapping):
        yield from pools.items()
        return
    for item in pools:
        if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
            yield item
        else:
            yield None, item


class BootstrapOrchestrator:
    """Run provisioning then pool patching, exactly once.

    State moves ``NOT_STARTED -> PROVISIONING -> PATCHING -> DONE`` and
    never re-enters an earlier state; a second ``run()`` returns the first
    report untouched.
    """

    def __init__(
        self,
        config: EncryptionConfig,
        registry: Optional[AdapterRegistry] = None,
    ):
        self.config = config
        self.registry = registry if registry is not None else default_registry()
        self.state = BootstrapState.NOT_STARTED
        self.report: Optional[BootstrapReport] = None

    def run(self, pools: PoolSource) -> BootstrapReport:
        """Provision the artifact and patch the given pools.

        Args:
            pools: The pools to patch, or a callable returning them. A
                callable is invoked once, after provisioning.

        Returns:
            BootstrapReport of this (or the first) run.
        """
        if self.state is not BootstrapState.NOT_STARTED:
            logger.warning(
                "EncDB bootstrap already ran (state=%s), ignoring", self.state.value
            )
            return self.report
        self.report = BootstrapReport(enabled=self.config.enabled)
        if not self.config.enabled:
            self.state = BootstrapState.DONE
            return self.report

        self.state = BootstrapState.PROVISIONING
        self._provision()

        self.state = BootstrapState.PATCHING
        self._patch_all(pools)

        self.state = BootstrapState.DONE
        logger.info("EncDB bootstrap finished: %s", self.report.summary())
        return self.report

    def _provision(self) -> None:
        try:
            result = provision(self.config)
        except Exception as err:
            logger.error("Failed to generate EncDB config file: %s", err)
            self.report.provision_error = str(err)
            return
        self.report.provision = result
        if self.config.show_log:
            logger.info(
                "EncDB config file at %s: %s", result.path, result.status.value
            )

    def _patch_all(self, pools: PoolSource) -> None:
        try:
            if callable(pools):
                pools = pools()
            for index, (name, pool) in enumerate(iter_pools(pools)):
                self._patch_one(index, name, pool)
        except Exception as err:
            logger.error("Failed to enumerate connection pools: %s", err)
            self.report.error = str(err)

    def _patch_one(self, index: int, name: Optional[str], pool: Any) -> None:
        label = name or f"pool[{index}]"
        try:
            report = patch_pool(pool, self.config, self.registry, name=label)
        except Exception as err:
            logger.warning("Failed to modify pool %s: %s", label, err)
            report = PoolReport(
                name=label, pool_type=type(pool).__name__, error=str(err)
            )
        else:
            if report.patched:
                logger.info("Modified connection pool: %s", label)
        self.report.pools.append(report)


def bootstrap(
    config: EncryptionConfig,
    pool_provider: PoolSource,
    registry: Optional[AdapterRegistry] = None,
) -> BootstrapReport:
    """Single entry point for host startup sequences.

    Args:
        config: Bootstrap configuration.
        pool_provider: Callable returning the host's constructed pools, or
            the pools themselves.
        registry: Pool adapter registry, defaults to ``default_registry()``.

    Returns:
        BootstrapReport of the run.
    """
    return BootstrapOrchestrator(config, registry).run(pool_provider)
