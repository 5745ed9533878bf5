"""
Object storage backends.

Modules:
    - local: objects stored as files below a root directory
    - http: objects stored behind an HTTP endpoint (PUT/GET/HEAD)
"""

from typing import Optional

import httpx

from ..models.config import StorageConfig
from ..protocols.storage_protocol import StorageProtocol
from .http import HTTPStorage
from .local import LocalStorage, copy_stream


def create_storage(config: StorageConfig, bucket: str, auth: Optional[httpx.Auth] = None) -> StorageProtocol:
    """
    Build the storage backend for a bucket.

    Args:
        config: Storage configuration
        bucket: Bucket the dataset lives in
        auth: Authentication for the http backend

    Returns:
        Storage backend instance
    """
    if config.backend == "local":
        return LocalStorage(config.root_dir or "", bucket)
    return HTTPStorage(config.endpoint or "", bucket, auth=auth, timeout=config.timeout)


__all__ = ["create_storage", "HTTPStorage", "LocalStorage", "copy_stream"]
