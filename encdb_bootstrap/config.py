"""
EncDB Configuration — Validated bootstrap settings.

Reads settings from environment variables in the format:
    ENCDB_ENABLED = true|false
    ENCDB_RESET = true|false
    ENCDB_MEK = <explicit master key>
    ENCDB_ENC_ALGO = <algorithm identifier>
    ENCDB_DRIVER_CLASS_NAME = <encrypted driver class>
    ENCDB_CONFIG_PATH = <artifact path>
    ENCDB_SHOW_LOG = true|false

Security Note:
    Never log the master key. ``repr()`` of the config hides it.
"""
import os
import logging
from typing import Optional
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("encdb.bootstrap")

DEFAULT_CONFIG_PATH = "/etc/encdb/config/encjdbc.conf"
DEFAULT_ALGORITHM = "SM4_128_CBC"
DEFAULT_DRIVER_CLASS_NAME = "com.aliyun.encdb.mysql.jdbc.EncDriver"
# property read by the encrypted driver to locate the artifact
CONFIG_FILE_PROPERTY = "encJdbcConfigFile"

_TRUE_VALUES = ("true", "1", "yes", "on")

# environment suffix -> field name
_ENV_FIELDS = {
    "ENABLED": "enabled",
    "RESET": "reset",
    "MEK": "mek",
    "ENC_ALGO": "algorithm",
    "DRIVER_CLASS_NAME": "driver_class_name",
    "CONFIG_PATH": "config_path",
    "SHOW_LOG": "show_log",
}
_BOOL_FIELDS = frozenset({"enabled", "reset", "show_log"})


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _get_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _single_line(name: str, value: str) -> str:
    # each value is one KEY=value line of the artifact
    if "\n" in value or "\r" in value:
        raise ValueError(f"{name} must not contain line breaks")
    return value


class EncryptionConfig(BaseModel):
    """Validated, immutable EncDB bootstrap configuration."""

    enabled: bool = False
    reset: bool = False
    mek: Optional[str] = Field(default=None, alias="masterKey", repr=False)
    algorithm: str = Field(default=DEFAULT_ALGORITHM, alias="encAlgo")
    driver_class_name: str = Field(
        default=DEFAULT_DRIVER_CLASS_NAME, alias="driverClassName"
    )
    config_path: str = Field(default=DEFAULT_CONFIG_PATH, alias="configPath")
    show_log: bool = Field(default=False, alias="showLog")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("mek", mode="before")
    @classmethod
    def blank_mek(cls, v):
        """An empty master key means 'generate one'."""
        if _is_blank(v):
            return None
        return _single_line("mek", v) if isinstance(v, str) else v

    @field_validator("algorithm", mode="before")
    @classmethod
    def default_algorithm(cls, v):
        if _is_blank(v):
            return DEFAULT_ALGORITHM
        return _single_line("algorithm", v) if isinstance(v, str) else v

    @field_validator("driver_class_name", mode="before")
    @classmethod
    def default_driver(cls, v):
        return DEFAULT_DRIVER_CLASS_NAME if _is_blank(v) else v

    @field_validator("config_path", mode="before")
    @classmethod
    def default_config_path(cls, v):
        if _is_blank(v):
            return DEFAULT_CONFIG_PATH
        return os.fspath(v)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = "ENCDB_",
    ) -> "EncryptionConfig":
        """Create EncryptionConfig by loading values from environment.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``.
            prefix: Variable name prefix.

        Returns:
            Populated EncryptionConfig instance.
        """
        if environ is None:
            environ = os.environ
        values = {}
        for suffix, name in _ENV_FIELDS.items():
            raw = environ.get(f"{prefix}{suffix}")
            if raw is None:
                continue
            values[name] = _get_bool(raw) if name in _BOOL_FIELDS else raw
        config = cls(**values)
        logger.debug(
            "Loaded EncDB config from environment: enabled=%s reset=%s path=%s",
            config.enabled, config.reset, config.config_path,
        )
        return config
