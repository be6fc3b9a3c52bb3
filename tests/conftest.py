"""Shared fixtures."""
import pytest

from encdb_bootstrap.config import EncryptionConfig


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "encdb" / "config" / "encjdbc.conf"


@pytest.fixture
def make_config(config_path):
    """Build an enabled EncryptionConfig pointing into tmp_path."""
    def _make(**kwargs):
        kwargs.setdefault("enabled", True)
        kwargs.setdefault("config_path", str(config_path))
        return EncryptionConfig(**kwargs)
    return _make
