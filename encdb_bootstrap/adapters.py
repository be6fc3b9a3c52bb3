"""
Pool Adapters — Capability interface over third-party connection pools.

A pool object is opaque: the bootstrap only needs to read and write three
of its fields (driver class name, connection URL and the auxiliary
properties mapping). Each supported pool type is described by a
``PoolAdapter``; the ``AdapterRegistry`` picks one by walking the pool's
MRO, falling back to a default adapter for unregistered types.
"""
import logging
from typing import Any, Optional, Union

from pydantic import BaseModel

from .exceptions import FieldNotFound

logger = logging.getLogger("encdb.bootstrap")

DRIVER_FIELDS = ("driverClassName", "driver_class_name")
URL_FIELDS = ("jdbcUrl", "jdbc_url")
PROPERTIES_FIELDS = ("dataSourceProperties", "data_source_properties")


def type_name(klass: type) -> str:
    """Return the dotted ``module.QualName`` of a type."""
    return f"{klass.__module__}.{klass.__qualname__}"


class PoolAdapter:
    """Access to the fields the bootstrap rewrites on a pool.

    Getters raise ``FieldNotFound`` when the pool does not own the field.
    """

    def get_driver(self, pool: Any) -> Any:
        raise FieldNotFound(type_name(type(pool)), DRIVER_FIELDS)

    def set_driver(self, pool: Any, value: str) -> None:
        raise FieldNotFound(type_name(type(pool)), DRIVER_FIELDS)

    def get_url(self, pool: Any) -> Any:
        raise FieldNotFound(type_name(type(pool)), URL_FIELDS)

    def set_url(self, pool: Any, value: str) -> None:
        raise FieldNotFound(type_name(type(pool)), URL_FIELDS)

    def get_properties(self, pool: Any) -> Any:
        raise FieldNotFound(type_name(type(pool)), PROPERTIES_FIELDS)

    def recognizes(self, pool: Any) -> bool:
        """True if the pool owns at least one of the fields."""
        return False


class NoopAdapter(PoolAdapter):
    """Adapter for pool types that own none of the fields."""

    def __repr__(self) -> str:
        return "<NoopAdapter>"


class FieldAdapter(PoolAdapter):
    """Adapter locating fields by conventional attribute names.

    A field is owned when one of its candidate names is in the instance
    ``__dict__`` or is declared on any class of the pool's MRO (class
    attributes, properties and ``__slots__`` all count). Candidates are
    tried in order; the first owned name wins.
    """

    def __init__(
        self,
        driver_fields: tuple = DRIVER_FIELDS,
        url_fields: tuple = URL_FIELDS,
        properties_fields: tuple = PROPERTIES_FIELDS,
    ):
        self.driver_fields = tuple(driver_fields)
        self.url_fields = tuple(url_fields)
        self.properties_fields = tuple(properties_fields)

    def __repr__(self) -> str:
        return (
            f"<FieldAdapter driver={self.driver_fields} url={self.url_fields} "
            f"properties={self.properties_fields}>"
        )

    @staticmethod
    def _owns(pool: Any, name: str) -> bool:
        instance_dict = getattr(pool, "__dict__", None)
        if isinstance(instance_dict, dict) and name in instance_dict:
            return True
        return any(name in vars(klass) for klass in type(pool).__mro__)

    def locate(self, pool: Any, candidates: tuple) -> Optional[str]:
        """Return the first candidate field name the pool owns."""
        for name in candidates:
            if self._owns(pool, name):
                return name
        return None

    def _field(self, pool: Any, candidates: tuple) -> str:
        name = self.locate(pool, candidates)
        if name is None:
            raise FieldNotFound(type_name(type(pool)), candidates)
        return name

    def _read(self, pool: Any, candidates: tuple) -> Any:
        # a declared slot that was never assigned reads as None
        return getattr(pool, self._field(pool, candidates), None)

    def get_driver(self, pool: Any) -> Any:
        return self._read(pool, self.driver_fields)

    def set_driver(self, pool: Any, value: str) -> None:
        setattr(pool, self._field(pool, self.driver_fields), value)

    def get_url(self, pool: Any) -> Any:
        return self._read(pool, self.url_fields)

    def set_url(self, pool: Any, value: str) -> None:
        setattr(pool, self._field(pool, self.url_fields), value)

    def get_properties(self, pool: Any) -> Any:
        return self._read(pool, self.properties_fields)

    def recognizes(self, pool: Any) -> bool:
        return any(
            self.locate(pool, candidates) is not None
            for candidates in (
                self.driver_fields, self.url_fields, self.properties_fields
            )
        )


class AdapterRegistry:
    """Map pool types to adapters.

    Types are keyed by their dotted name, so adapters can be registered
    for third-party pools without importing them.
    """

    def __init__(self, fallback: Optional[PoolAdapter] = None):
        self._adapters: dict[str, PoolAdapter] = {}
        self.fallback = fallback if fallback is not None else NoopAdapter()

    def __len__(self) -> int:
        return len(self._adapters)

    def __contains__(self, pool_type: Union[type, str]) -> bool:
        return self._key(pool_type) in self._adapters

    @staticmethod
    def _key(pool_type: Union[type, str]) -> str:
        if isinstance(pool_type, str):
            return pool_type
        return type_name(pool_type)

    def register(
        self, pool_type: Union[type, str], adapter: PoolAdapter
    ) -> PoolAdapter:
        """Register an adapter for a pool type and its subclasses.

        Args:
            pool_type: The pool class or its dotted ``module.QualName``.
            adapter: Adapter used for that type.

        Returns:
            The registered adapter.
        """
        key = self._key(pool_type)
        self._adapters[key] = adapter
        logger.debug("Registered pool adapter %r for %s", adapter, key)
        return adapter

    def unregister(self, pool_type: Union[type, str]) -> None:
        self._adapters.pop(self._key(pool_type), None)

    def lookup(self, pool: Any) -> PoolAdapter:
        """Return the adapter for the closest registered ancestor type."""
        for klass in type(pool).__mro__:
            adapter = self._adapters.get(type_name(klass))
            if adapter is not None:
                return adapter
        return self.fallback


def default_registry() -> AdapterRegistry:
    """Registry probing every pool for the conventional field names.

    pydantic models (the bootstrap config and reports among them) are never
    pools, even though their fields live in the instance ``__dict__``.
    """
    registry = AdapterRegistry(fallback=FieldAdapter())
    registry.register(BaseModel, NoopAdapter())
    return registry
