"""
Protocols for type safety.

This package defines the seams between the transfer core and its
collaborators (archivers, storage backends, the dataset API and credential
providers), enabling type checking and test fakes without inheritance.
"""

from .archiver_protocol import ArchiverProtocol, ArchiveVisitor, IndexVisitor, ObjectFetcher
from .credentials_protocol import CredentialProvider
from .dataset_protocol import DatasetLifecycleProtocol, DatasetStatusOracle
from .storage_protocol import ChunkCallback, StorageProtocol
from .transfer_protocol import DataClientProtocol

__all__ = [
    "ArchiverProtocol",
    "ArchiveVisitor",
    "IndexVisitor",
    "ObjectFetcher",
    "CredentialProvider",
    "DatasetLifecycleProtocol",
    "DatasetStatusOracle",
    "ChunkCallback",
    "StorageProtocol",
    "DataClientProtocol",
]
