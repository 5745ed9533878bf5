"""
Storage backend protocol.

The transfer layer only needs keyed put and get. Both are idempotent per key:
putting the same key twice leaves the last content in place.
"""

from typing import BinaryIO, Callable, Optional, Protocol, runtime_checkable

from ..utils.cancellation import CancelToken

# Called with the number of bytes moved since the previous call
ChunkCallback = Callable[[int], None]


@runtime_checkable
class StorageProtocol(Protocol):
    """Protocol defining the interface for object storage backends."""

    bucket: str

    def put(
        self,
        key: str,
        reader: BinaryIO,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Store the content of ``reader`` under ``key``.

        Returns:
            Number of bytes stored
        """
        ...

    def get(
        self,
        key: str,
        writer: BinaryIO,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Write the object stored under ``key`` into ``writer``.

        Returns:
            Number of bytes written
        """
        ...

    def exists(self, key: str) -> bool:
        """Check whether an object is stored under ``key``."""
        ...

    def close(self) -> None:
        """Release local resources such as HTTP connections."""
        ...


__all__ = ["StorageProtocol", "ChunkCallback"]
