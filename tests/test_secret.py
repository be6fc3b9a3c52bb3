"""
Tests for master key provisioning.

Tests cover:
- Idempotent provisioning and reset semantics
- Explicit key precedence
- Artifact format and permissions
- Error reporting on IO failures
- Reading artifacts back
"""
import os
import re
import sys

import pytest

from encdb_bootstrap import secret
from encdb_bootstrap.secret import (
    ProvisionStatus,
    generate_master_key,
    provision,
    read_artifact,
)
from encdb_bootstrap.exceptions import ArtifactError, ProvisioningError

_HEX32 = re.compile(r"^[0-9a-f]{32}$")


class TestGenerateMasterKey:

    def test_32_hex_characters(self):
        assert _HEX32.match(generate_master_key())

    def test_keys_differ(self):
        assert len({generate_master_key() for _ in range(20)}) == 20


class TestProvision:
    """Tests for provision()."""

    def test_disabled_is_noop(self, make_config, config_path):
        result = provision(make_config(enabled=False))
        assert result.status is ProvisionStatus.SKIPPED
        assert result.reason == "disabled"
        assert not config_path.parent.exists()

    def test_creates_directories_and_file(self, make_config, config_path):
        result = provision(make_config())
        assert result.status is ProvisionStatus.WRITTEN
        assert result.generated is True
        assert result.path == str(config_path)
        content = config_path.read_text(encoding="utf-8")
        lines = content.splitlines()
        assert content.endswith("\n")
        assert len(lines) == 2
        assert lines[0].startswith("MEK=")
        assert _HEX32.match(lines[0][len("MEK="):])
        assert lines[1] == "ENC_ALGO=SM4_128_CBC"

    def test_idempotent_without_reset(self, make_config, config_path):
        config = make_config()
        provision(config)
        first = config_path.read_bytes()
        result = provision(config)
        assert result.status is ProvisionStatus.SKIPPED
        assert result.reason == "exists"
        assert config_path.read_bytes() == first

    def test_existing_file_untouched_even_with_new_settings(self, make_config, config_path):
        provision(make_config())
        first = config_path.read_bytes()
        provision(make_config(mek="abc123", algorithm="AES_128_GCM"))
        assert config_path.read_bytes() == first

    def test_reset_regenerates_key(self, make_config, config_path):
        provision(make_config())
        k1 = read_artifact(config_path).mek
        result = provision(make_config(reset=True, algorithm="AES_128_GCM"))
        artifact = read_artifact(config_path)
        assert result.status is ProvisionStatus.WRITTEN
        assert artifact.mek != k1
        assert artifact.algorithm == "AES_128_GCM"

    def test_reset_reapplies_default_algorithm(self, make_config, config_path):
        provision(make_config(algorithm="AES_128_GCM"))
        provision(make_config(reset=True))
        assert read_artifact(config_path).algorithm == "SM4_128_CBC"

    @pytest.mark.parametrize("reset", [False, True])
    def test_explicit_key_precedence(self, make_config, config_path, reset):
        result = provision(make_config(mek="abc123", reset=reset))
        assert result.generated is False
        assert read_artifact(config_path).mek == "abc123"

    def test_explicit_key_on_reset_overwrites(self, make_config, config_path):
        provision(make_config())
        provision(make_config(mek="abc123", reset=True))
        assert config_path.read_text(encoding="utf-8") == "MEK=abc123\nENC_ALGO=SM4_128_CBC\n"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, make_config, config_path):
        provision(make_config())
        assert os.stat(config_path).st_mode & 0o777 == 0o600

    def test_key_not_logged(self, make_config, config_path, caplog):
        caplog.set_level("DEBUG", logger="encdb.bootstrap")
        provision(make_config(mek="abc123-secret"))
        assert "abc123-secret" not in caplog.text
        assert str(config_path) in caplog.text


class TestProvisionErrors:
    """Tests for IO failures surfacing as ProvisioningError."""

    def test_directory_cannot_be_created(self, make_config, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        config = make_config(config_path=str(blocker / "sub" / "c.conf"))
        with pytest.raises(ProvisioningError) as exc:
            provision(config)
        assert isinstance(exc.value.__cause__, OSError)

    def test_write_failure_leaves_no_partial_file(self, make_config, config_path, monkeypatch):
        provision(make_config(mek="original"))

        def _fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(secret.os, "replace", _fail)
        with pytest.raises(ProvisioningError):
            provision(make_config(mek="replacement", reset=True))
        assert read_artifact(config_path).mek == "original"
        assert sorted(p.name for p in config_path.parent.iterdir()) == [config_path.name]


class TestReadArtifact:
    """Tests for read_artifact()."""

    def test_parses_comments_and_unknown_keys(self, tmp_path):
        path = tmp_path / "c.conf"
        path.write_text("# generated\n\nMEK=abc\nENC_ALGO=SM4_128_CBC\nEXTRA=1\n")
        artifact = read_artifact(path)
        assert artifact.mek == "abc"
        assert artifact.algorithm == "SM4_128_CBC"

    def test_missing_mek(self, tmp_path):
        path = tmp_path / "c.conf"
        path.write_text("ENC_ALGO=SM4_128_CBC\n")
        with pytest.raises(ArtifactError):
            read_artifact(path)

    def test_malformed_line(self, tmp_path):
        path = tmp_path / "c.conf"
        path.write_text("MEK=abc\ngarbage\n")
        with pytest.raises(ArtifactError):
            read_artifact(path)

    def test_repr_hides_key(self, tmp_path):
        path = tmp_path / "c.conf"
        path.write_text("MEK=topsecret\n")
        assert "topsecret" not in repr(read_artifact(path))
