"""
Pool Field Patcher — Point one connection pool at the EncDB driver.

Three independent rewrites are attempted on every pool:

- driver class name  -> ``config.driver_class_name``
- connection URL     -> ``transcode(url)``
- properties mapping -> ``encJdbcConfigFile = config.config_path``

A failure on one field never prevents the others, and nothing raised by
the pool escapes ``patch_pool``.
"""
import logging
from enum import Enum
from typing import Any, Optional
from collections.abc import MutableMapping

from pydantic import BaseModel

from .adapters import AdapterRegistry, PoolAdapter, default_registry, type_name
from .config import CONFIG_FILE_PROPERTY, EncryptionConfig
from .exceptions import FieldNotFound, PatchError
from .url import transcode

logger = logging.getLogger("encdb.bootstrap")

DRIVER = "driver"
URL = "url"
PROPERTIES = "properties"


class PatchOutcome(str, Enum):
    PATCHED = "patched"
    SKIPPED = "skipped"
    FAILED = "failed"


class FieldResult(BaseModel):
    """Outcome of one field rewrite."""

    field: str
    outcome: PatchOutcome
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    error: Optional[str] = None


class PoolReport(BaseModel):
    """Field outcomes for a single pool."""

    name: str
    pool_type: str
    fields: list[FieldResult] = []
    error: Optional[str] = None

    def outcome(self, field: str) -> Optional[PatchOutcome]:
        for result in self.fields:
            if result.field == field:
                return result.outcome
        return None

    @property
    def patched(self) -> bool:
        return any(r.outcome is PatchOutcome.PATCHED for r in self.fields)

    @property
    def failed(self) -> bool:
        return self.error is not None or any(
            r.outcome is PatchOutcome.FAILED for r in self.fields
        )


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _patch_driver(
    pool: Any, adapter: PoolAdapter, config: EncryptionConfig
) -> FieldResult:
    old = adapter.get_driver(pool)
    new = config.driver_class_name
    if config.show_log:
        logger.info("Changing driverClassName from %s to %s", old, new)
    adapter.set_driver(pool, new)
    return FieldResult(
        field=DRIVER, outcome=PatchOutcome.PATCHED,
        old_value=_as_text(old), new_value=new,
    )


def _patch_url(
    pool: Any, adapter: PoolAdapter, config: EncryptionConfig
) -> FieldResult:
    old = adapter.get_url(pool)
    if old is None:
        return FieldResult(field=URL, outcome=PatchOutcome.SKIPPED)
    if not isinstance(old, str):
        raise PatchError(f"URL field holds {type(old).__name__}, not str")
    new = transcode(old)
    if config.show_log:
        logger.info("Changing URL from %s to %s", old, new)
    adapter.set_url(pool, new)
    return FieldResult(
        field=URL, outcome=PatchOutcome.PATCHED, old_value=old, new_value=new,
    )


def _patch_properties(
    pool: Any, adapter: PoolAdapter, config: EncryptionConfig
) -> FieldResult:
    properties = adapter.get_properties(pool)
    if not isinstance(properties, MutableMapping):
        raise PatchError(
            f"properties field holds {type(properties).__name__}, not a mapping"
        )
    old = properties.get(CONFIG_FILE_PROPERTY)
    properties[CONFIG_FILE_PROPERTY] = config.config_path
    if config.show_log:
        logger.info(
            "Setting %s from %s to %s",
            CONFIG_FILE_PROPERTY, old, config.config_path,
        )
    return FieldResult(
        field=PROPERTIES, outcome=PatchOutcome.PATCHED,
        old_value=_as_text(old), new_value=config.config_path,
    )


_STEPS = (
    (DRIVER, _patch_driver),
    (URL, _patch_url),
    (PROPERTIES, _patch_properties),
)


def patch_pool(
    pool: Any,
    config: EncryptionConfig,
    registry: Optional[AdapterRegistry] = None,
    name: Optional[str] = None,
) -> PoolReport:
    """Rewrite driver, URL and properties of one pool.

    Args:
        pool: Connection pool object, patched in place.
        config: Bootstrap configuration.
        registry: Adapter registry, defaults to ``default_registry()``.
        name: Label used in logs and the report.

    Returns:
        PoolReport with one FieldResult per field.
    """
    if registry is None:
        registry = default_registry()
    pool_type = type_name(type(pool))
    report = PoolReport(name=name or pool_type, pool_type=pool_type)
    try:
        adapter = registry.lookup(pool)
    except Exception as err:
        logger.warning("No adapter for pool %s: %s", report.name, err)
        report.error = str(err)
        return report

    for field, step in _STEPS:
        try:
            result = step(pool, adapter, config)
        except FieldNotFound as err:
            logger.debug("Pool %s: %s not patched (%s)", report.name, field, err)
            result = FieldResult(field=field, outcome=PatchOutcome.SKIPPED)
        except Exception as err:
            logger.warning(
                "Failed to modify %s of pool %s: %s", field, report.name, err,
            )
            result = FieldResult(
                field=field, outcome=PatchOutcome.FAILED, error=str(err)
            )
        report.fields.append(result)
    return report
