"""Context models for dataset-tool CLI operations."""

from typing import Optional

from pydantic import Field

from ..utils.constants import DEFAULT_MAX_WORKERS, MAX_WORKERS_LIMIT
from .base import DatasetToolBaseModel


class PushContext(DatasetToolBaseModel):
    """
    Context information for push operations.

    Attributes:
        local_path: Absolute path of the directory to push
        name: Dataset name, generated when None
        config: Optional path to config file
        debug: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG, 3+=DEBUG with HTTP logs)
    """

    local_path: str
    name: Optional[str] = None
    config: Optional[str] = None
    debug: int = 0


class DownloadContext(DatasetToolBaseModel):
    """
    Context information for download operations.

    Attributes:
        dataset_id: Dataset to download
        local_dir: Destination directory
        config: Optional path to config file
        debug: Verbosity level
        concurrency: Number of download workers, from configuration when None
    """

    dataset_id: str
    local_dir: str
    config: Optional[str] = None
    debug: int = 0
    concurrency: Optional[int] = Field(default=None, ge=1, le=MAX_WORKERS_LIMIT)

    def workers(self, configured: int = DEFAULT_MAX_WORKERS) -> int:
        """Effective number of download workers."""
        return self.concurrency or configured


__all__ = ["PushContext", "DownloadContext"]
