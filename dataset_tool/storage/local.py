"""
Filesystem storage backend.

Objects live at ``<root_dir>/<bucket>/<key>``. Writes go through a temporary
file in the target directory and are renamed into place, so a reader never
observes a partially written object and the last put of a key wins.
"""

import logging
import os
import tempfile
from typing import BinaryIO, Optional

from ..exceptions import StorageError
from ..protocols.storage_protocol import ChunkCallback
from ..utils.cancellation import CancelToken, raise_if_cancelled
from ..utils.constants import DEFAULT_CHUNK_SIZE


def copy_stream(
    reader: BinaryIO,
    writer: BinaryIO,
    on_chunk: Optional[ChunkCallback] = None,
    cancel: Optional[CancelToken] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Copy ``reader`` into ``writer`` chunk by chunk.

    Returns:
        Number of bytes copied

    Raises:
        OperationCancelledError: If ``cancel`` is set between chunks
    """
    total = 0
    while True:
        raise_if_cancelled(cancel)
        chunk = reader.read(chunk_size)
        if not chunk:
            return total
        writer.write(chunk)
        total += len(chunk)
        if on_chunk is not None:
            on_chunk(len(chunk))


class LocalStorage:
    """Object storage on a local (or network mounted) directory."""

    def __init__(self, root_dir: str, bucket: str) -> None:
        self.root_dir = os.path.abspath(os.path.expanduser(root_dir))
        self.bucket = bucket
        self._bucket_dir = os.path.join(self.root_dir, bucket)

    def __repr__(self) -> str:
        return f"LocalStorage(root_dir={self.root_dir!r}, bucket={self.bucket!r})"

    def _path(self, key: str) -> str:
        parts = key.split("/")
        if not key or key.startswith("/") or any(part in ("", ".", "..") for part in parts):
            raise StorageError("invalid object key", key)
        return os.path.join(self._bucket_dir, *parts)

    def put(
        self,
        key: str,
        reader: BinaryIO,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """Store the content of ``reader`` under ``key``."""
        path = self._path(key)
        directory = os.path.dirname(path)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".upload-", dir=directory)
        except OSError as e:
            raise StorageError(f"failed to prepare object ({e})", key) from e

        try:
            with os.fdopen(fd, "wb") as f:
                size = copy_stream(reader, f, on_chunk, cancel)
            os.replace(tmp_path, path)
        except OSError as e:
            os.unlink(tmp_path)
            raise StorageError(f"failed to write object ({e})", key) from e
        except BaseException:
            os.unlink(tmp_path)
            raise

        logging.debug("Stored %s (%d bytes) in %s", key, size, self._bucket_dir)
        return size

    def get(
        self,
        key: str,
        writer: BinaryIO,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """Write the object stored under ``key`` into ``writer``."""
        path = self._path(key)
        try:
            with open(path, "rb") as f:
                return copy_stream(f, writer, on_chunk, cancel)
        except FileNotFoundError as e:
            raise StorageError("object not found", key) from e
        except OSError as e:
            raise StorageError(f"failed to read object ({e})", key) from e

    def exists(self, key: str) -> bool:
        return os.path.isfile(self._path(key))

    def close(self) -> None:
        """Nothing to release for local storage."""


__all__ = ["LocalStorage", "copy_stream"]
