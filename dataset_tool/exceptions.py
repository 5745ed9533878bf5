"""
Exception hierarchy for dataset-tool.

Every error raised by the package derives from DatasetToolError so callers
can catch the whole family, while the individual classes also derive from
the closest builtin (OSError, TimeoutError, LookupError, ValueError) so
generic handlers keep working.
"""

from typing import List, Optional


class DatasetToolError(Exception):
    """Base class for all dataset-tool errors."""


class ArchiveError(DatasetToolError, OSError):
    """A filesystem walk, read or write failed while (un)archiving."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        if path:
            message = f"{message}: {path}"
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class UnsupportedEntryError(ArchiveError):
    """The archiver met a filesystem entry it is configured not to handle."""


class DestinationNotEmptyError(DatasetToolError):
    """The unarchive destination already contains entries."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"directory is not empty: {path}")


class InvalidSpecificationError(DatasetToolError, ValueError):
    """A user supplied specification or option is malformed."""


class DatasetNotFoundError(DatasetToolError, LookupError):
    """The remote dataset does not exist."""

    def __init__(self, dataset_id: str) -> None:
        self.dataset_id = dataset_id
        super().__init__(f"dataset not found: {dataset_id}")


class UploadTimedOutError(DatasetToolError, TimeoutError):
    """The uploader's declared expiry passed before the upload succeeded."""

    def __init__(self, dataset_id: str, expire: float) -> None:
        self.dataset_id = dataset_id
        self.expire = expire
        super().__init__(f"cannot start download of {dataset_id}, because the upload timed out")


class OperationCancelledError(DatasetToolError):
    """The ambient cancellation token was cancelled."""

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)


class StorageError(DatasetToolError, OSError):
    """Reading or writing an object in the storage backend failed."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        self.key = key
        if key:
            message = f"{message}: {key}"
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class CredentialError(DatasetToolError):
    """A single credential provider could not produce a credential."""


class CredentialChainError(DatasetToolError):
    """Every provider in a credential chain failed."""

    def __init__(self, errors: List[Exception]) -> None:
        self.errors = list(errors)
        causes = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"could not retrieve token from any provider: [{causes}]")


__all__ = [
    "DatasetToolError",
    "ArchiveError",
    "UnsupportedEntryError",
    "DestinationNotEmptyError",
    "InvalidSpecificationError",
    "DatasetNotFoundError",
    "UploadTimedOutError",
    "OperationCancelledError",
    "StorageError",
    "CredentialError",
    "CredentialChainError",
]
