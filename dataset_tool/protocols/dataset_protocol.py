"""
Dataset API protocols.

The download orchestrator only reads dataset status; the transfer manager
also creates datasets and moves their upload status forward.
"""

from typing import Protocol, runtime_checkable

from ..models.dataset import DatasetSummary


@runtime_checkable
class DatasetStatusOracle(Protocol):
    """Read-only view on dataset upload status."""

    def describe_dataset(self, dataset_id: str) -> DatasetSummary:
        """
        Describe a dataset.

        Raises:
            DatasetNotFoundError: If the dataset does not exist
        """
        ...


@runtime_checkable
class DatasetLifecycleProtocol(DatasetStatusOracle, Protocol):
    """Dataset API operations used by the uploading side."""

    def create_dataset(self, name: str) -> DatasetSummary:
        """Create a new, pending dataset."""
        ...

    def start_upload(self, dataset_id: str, expire: float) -> DatasetSummary:
        """Mark a dataset as uploading until the absolute time ``expire``."""
        ...

    def finish_upload(self, dataset_id: str) -> DatasetSummary:
        """Mark a dataset upload as successful."""
        ...


__all__ = ["DatasetStatusOracle", "DatasetLifecycleProtocol"]
