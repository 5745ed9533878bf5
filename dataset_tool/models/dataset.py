"""
Pydantic models for datasets as described by the dataset API.
"""

import time
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import ApiBaseModel, DatasetToolBaseModel


class UploadStatus(str, Enum):
    """Upload status of a dataset. Only ever moves forward."""

    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"

    @property
    def order(self) -> int:
        return _STATUS_ORDER[self]

    def can_transition_to(self, other: "UploadStatus") -> bool:
        """Check whether moving from this status to ``other`` keeps the order."""
        return other.order >= self.order


_STATUS_ORDER = {
    UploadStatus.PENDING: 0,
    UploadStatus.UPLOADING: 1,
    UploadStatus.SUCCESS: 2,
}


class DatasetSummary(ApiBaseModel):
    """
    Dataset as returned by the dataset API.

    Attributes:
        dataset_id: Opaque dataset identifier
        name: Human readable dataset name
        project_id: Project the dataset belongs to
        bucket: Storage bucket holding the dataset objects
        dataset_root: Key prefix under which all objects live
        upload_status: Current upload status
        upload_expire: Unix timestamp after which an unfinished upload is abandoned
    """

    dataset_id: str
    name: str = ""
    project_id: Optional[str] = None
    bucket: str
    dataset_root: str
    upload_status: UploadStatus = UploadStatus.PENDING
    upload_expire: float = 0

    @property
    def is_uploaded(self) -> bool:
        """Check if the upload has finished successfully."""
        return self.upload_status == UploadStatus.SUCCESS

    def seconds_until_expiry(self, now: Optional[float] = None) -> float:
        """Seconds left before the upload is considered abandoned (may be negative)."""
        return self.upload_expire - (time.time() if now is None else now)

    @property
    def key_prefix(self) -> str:
        """Root prefix for archive objects, always ending in a slash."""
        root = self.dataset_root.strip("/")
        return f"{root}/" if root else ""


class DatasetMetadata(DatasetToolBaseModel):
    """
    Metadata object written next to the archive objects after a push.

    Attributes:
        size: Total number of archive bytes uploaded
        keys: Object keys that make up the dataset
        archiver: Archiver type used to produce the objects
    """

    size: int = Field(default=0, ge=0)
    keys: List[str] = Field(default_factory=list)
    archiver: str = "tar"


__all__ = ["UploadStatus", "DatasetSummary", "DatasetMetadata"]
