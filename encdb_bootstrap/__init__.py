"""EncDB Bootstrap — Transparent data encryption retrofit for connection pools.

At startup, provisions the master encryption key artifact and rewrites the
driver class, connection URL and properties of already-built connection
pools so they go through the encryption-aware driver.

Security Note:
    The artifact holds the master key in clear text, readable by its owner
    only. Protecting it at rest is out of scope.
"""
from .version import __version__
from .config import EncryptionConfig
from .exceptions import (
    EncDbError,
    ProvisioningError,
    ArtifactError,
    FieldNotFound,
    PatchError,
)
from .url import transcode
from .secret import provision, read_artifact, generate_master_key
from .adapters import AdapterRegistry, FieldAdapter, NoopAdapter, default_registry
from .patcher import patch_pool, PatchOutcome
from .orchestrator import BootstrapOrchestrator, BootstrapReport, bootstrap

__all__ = [
    "__version__",
    "EncryptionConfig",
    "EncDbError",
    "ProvisioningError",
    "ArtifactError",
    "FieldNotFound",
    "PatchError",
    "transcode",
    "provision",
    "read_artifact",
    "generate_master_key",
    "AdapterRegistry",
    "FieldAdapter",
    "NoopAdapter",
    "default_registry",
    "patch_pool",
    "PatchOutcome",
    "BootstrapOrchestrator",
    "BootstrapReport",
    "bootstrap",
]
