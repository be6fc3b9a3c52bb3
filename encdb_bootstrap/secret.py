"""
Master Key Provisioning — Generate and persist the EncDB config artifact.

The artifact is a two-line ``KEY=value`` file read by the encrypted driver:

    MEK=<master encryption key>
    ENC_ALGO=<algorithm identifier>

Provisioning is idempotent: an existing artifact is never touched unless
``reset`` is set.

Security Note:
    Never log the master key. The artifact is created owner read/write only.
"""
import os
import logging
import secrets
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from .config import EncryptionConfig
from .exceptions import ArtifactError, ProvisioningError

logger = logging.getLogger("encdb.bootstrap")

MEK_KEY = "MEK"
ALGORITHM_KEY = "ENC_ALGO"
MEK_BYTES = 16  # 128-bit key, 32 hex characters
ARTIFACT_MODE = 0o600


class ProvisionStatus(str, Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"


class ProvisionResult(BaseModel):
    """Outcome of a provisioning run."""

    status: ProvisionStatus
    path: str
    reason: Optional[str] = None
    generated: bool = False


class SecretArtifact(BaseModel):
    """Parsed content of an artifact file."""

    mek: str = Field(repr=False)
    algorithm: Optional[str] = None


def generate_master_key() -> str:
    """Generate a random 16-byte master key and return it hex-encoded.

    Returns:
        32-character lowercase hex string.
    """
    return secrets.token_bytes(MEK_BYTES).hex()


def render_artifact(mek: str, algorithm: str) -> str:
    return f"{MEK_KEY}={mek}\n{ALGORITHM_KEY}={algorithm}\n"


def read_artifact(path: Union[str, os.PathLike]) -> SecretArtifact:
    """Read an existing artifact file.

    Blank lines and ``#`` comments are ignored, as are unknown keys.

    Args:
        path: Artifact location.

    Returns:
        Parsed SecretArtifact.

    Raises:
        ArtifactError: If the file has no MEK entry or a malformed line.
        OSError: If the file cannot be read.
    """
    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as fp:
        for lineno, line in enumerate(fp, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                raise ArtifactError(f"{path}:{lineno}: expected KEY=value")
            values[key.strip()] = value.strip()
    if not values.get(MEK_KEY):
        raise ArtifactError(f"{path}: missing {MEK_KEY} entry")
    return SecretArtifact(mek=values[MEK_KEY], algorithm=values.get(ALGORITHM_KEY))


def _write_private(path: Path, content: str) -> None:
    """Write content to path through a same-directory temp file.

    The temp file is created 0600 and renamed over the target, so readers
    never observe a partial artifact.
    """
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fp:
            fp.write(content)
            fp.flush()
            os.fsync(fp.fileno())
        os.chmod(tmp_path, ARTIFACT_MODE)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


def provision(config: EncryptionConfig) -> ProvisionResult:
    """Create the master key artifact unless it already exists.

    Args:
        config: Bootstrap configuration.

    Returns:
        ProvisionResult describing whether the artifact was written.

    Raises:
        ProvisioningError: If the directory or the file cannot be written.
    """
    path = Path(config.config_path)
    if not config.enabled:
        return ProvisionResult(
            status=ProvisionStatus.SKIPPED, path=str(path), reason="disabled"
        )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise ProvisioningError(
            str(path.parent), "Cannot create artifact directory"
        ) from err

    if path.exists() and not config.reset:
        logger.debug("EncDB artifact already present at %s, keeping it", path)
        return ProvisionResult(
            status=ProvisionStatus.SKIPPED, path=str(path), reason="exists"
        )

    generated = config.mek is None
    mek = generate_master_key() if generated else config.mek
    try:
        _write_private(path, render_artifact(mek, config.algorithm))
    except OSError as err:
        raise ProvisioningError(str(path), "Cannot write artifact") from err

    logger.info(
        "EncDB artifact written to %s (algorithm=%s, generated_key=%s)",
        path, config.algorithm, generated,
    )
    return ProvisionResult(
        status=ProvisionStatus.WRITTEN, path=str(path), generated=generated
    )
