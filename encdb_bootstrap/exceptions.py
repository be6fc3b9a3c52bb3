"""EncDB Bootstrap exceptions."""


class EncDbError(Exception):
    """Base class for every error raised by encdb_bootstrap."""


class ProvisioningError(EncDbError):
    """The master key artifact could not be created or written."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class ArtifactError(EncDbError):
    """An existing master key artifact could not be parsed."""


class FieldNotFound(EncDbError, AttributeError):
    """A pool does not own the requested field.

    Not a failure: not every pool type carries every field.
    """

    def __init__(self, pool_type: str, candidates: tuple):
        self.pool_type = pool_type
        self.candidates = candidates
        super().__init__(
            f"{pool_type} has none of the fields {', '.join(candidates)}"
        )


class PatchError(EncDbError):
    """A pool field was found but holds a value of the wrong type."""
