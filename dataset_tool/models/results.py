"""Result models for push and download operations."""

from typing import List

from pydantic import Field

from .base import DatasetToolBaseModel


class PushResult(DatasetToolBaseModel):
    """
    Result of pushing a local directory into a dataset.

    Attributes:
        dataset_id: Dataset that received the objects
        name: Dataset name
        keys: Object keys that were uploaded
        bytes_transferred: Total archive bytes uploaded
        duration: Wall clock seconds spent
    """

    dataset_id: str
    name: str = ""
    keys: List[str] = Field(default_factory=list)
    bytes_transferred: int = 0
    duration: float = 0.0

    @property
    def object_count(self) -> int:
        """Number of archive objects uploaded."""
        return len(self.keys)


class DownloadResult(DatasetToolBaseModel):
    """
    Result of downloading a dataset into a local directory.

    Attributes:
        dataset_id: Dataset that was downloaded
        local_dir: Destination directory
        keys: Object keys that were fetched and extracted
        bytes_transferred: Total archive bytes fetched
        polls: Number of dataset status checks performed before fetching
        duration: Wall clock seconds spent
    """

    dataset_id: str
    local_dir: str
    keys: List[str] = Field(default_factory=list)
    bytes_transferred: int = 0
    polls: int = 0
    duration: float = 0.0

    @property
    def object_count(self) -> int:
        """Number of archive objects fetched."""
        return len(self.keys)


__all__ = ["PushResult", "DownloadResult"]
