"""
HTTP object storage backend.

Objects are addressed as ``{endpoint}/{bucket}/{key}``: PUT stores an object,
GET streams it back and HEAD checks for its existence. Uploads are streamed
from the (seekable) reader with a Content-Length header, so objects of any
size go through without being held in memory.
"""

import logging
from typing import Any, BinaryIO, Iterator, Optional
from urllib.parse import quote

import httpx

from ..exceptions import StorageError
from ..protocols.storage_protocol import ChunkCallback
from ..utils.cancellation import CancelToken, raise_if_cancelled
from ..utils.constants import DEFAULT_CHUNK_SIZE, HTTP_STATUS_NOT_FOUND
from ..utils.session import create_session_with_retry


class _UploadBody:
    """
    Re-iterable request body over a seekable reader.

    httpx iterates the body again when an auth flow resends a request (after
    a 401), so every iteration starts from the reader's initial position.
    """

    def __init__(
        self,
        reader: BinaryIO,
        on_chunk: Optional[ChunkCallback],
        cancel: Optional[CancelToken],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._reader = reader
        self._start = reader.tell()
        self._on_chunk = on_chunk
        self._cancel = cancel
        self._chunk_size = chunk_size
        self.sent = 0

    def __iter__(self) -> Iterator[bytes]:
        self._reader.seek(self._start)
        self.sent = 0
        while True:
            raise_if_cancelled(self._cancel)
            chunk = self._reader.read(self._chunk_size)
            if not chunk:
                return
            self.sent += len(chunk)
            if self._on_chunk is not None:
                self._on_chunk(len(chunk))
            yield chunk


def _content_length(reader: BinaryIO) -> int:
    position = reader.tell()
    end = reader.seek(0, 2)
    reader.seek(position)
    return end - position


class HTTPStorage:
    """Object storage reached over plain HTTP verbs."""

    def __init__(
        self,
        endpoint: str,
        bucket: str,
        auth: Optional[httpx.Auth] = None,
        session: Optional[httpx.Client] = None,
        timeout: float = 300,
    ) -> None:
        """
        Initialize the HTTP storage backend.

        Args:
            endpoint: Object store base URL
            bucket: Bucket holding the dataset objects
            auth: Optional httpx.Auth used for every request
            session: Optional preconfigured httpx.Client
            timeout: Request timeout in seconds
        """
        self.endpoint = endpoint.rstrip("/")
        self.bucket = bucket
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or create_session_with_retry(auth=auth, timeout=timeout)

    def __repr__(self) -> str:
        return f"HTTPStorage(endpoint={self.endpoint!r}, bucket={self.bucket!r})"

    def url(self, key: str) -> str:
        """URL of the object stored under ``key``."""
        return f"{self.endpoint}/{quote(self.bucket)}/{quote(key)}"

    def put(
        self,
        key: str,
        reader: BinaryIO,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Upload the content of ``reader`` to ``key``.

        Raises:
            StorageError: If the upload fails
            OperationCancelledError: If ``cancel`` is set during the upload
        """
        raise_if_cancelled(cancel)
        try:
            size = _content_length(reader)
        except OSError as e:
            raise StorageError(f"failed to size upload ({e})", key) from e

        body = _UploadBody(reader, on_chunk, cancel)
        logging.debug("Uploading %s (%d bytes)", key, size)
        try:
            response = self.session.put(
                self.url(key),
                content=body,
                headers={"Content-Length": str(size), "Content-Type": "application/octet-stream"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(f"upload failed with status {e.response.status_code}", key) from e
        except httpx.HTTPError as e:
            raise StorageError(f"upload failed ({e})", key) from e

        return body.sent

    def get(
        self,
        key: str,
        writer: BinaryIO,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Stream the object stored under ``key`` into ``writer``.

        Raises:
            StorageError: If the object is missing or the download fails
            OperationCancelledError: If ``cancel`` is set during the download
        """
        raise_if_cancelled(cancel)
        total = 0
        try:
            with self.session.stream("GET", self.url(key), timeout=self.timeout) as response:
                if response.status_code == HTTP_STATUS_NOT_FOUND:
                    raise StorageError("object not found", key)
                response.raise_for_status()
                for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
                    raise_if_cancelled(cancel)
                    writer.write(chunk)
                    total += len(chunk)
                    if on_chunk is not None:
                        on_chunk(len(chunk))
        except httpx.HTTPStatusError as e:
            raise StorageError(f"download failed with status {e.response.status_code}", key) from e
        except httpx.HTTPError as e:
            raise StorageError(f"download failed ({e})", key) from e

        logging.debug("Downloaded %s (%d bytes)", key, total)
        return total

    def exists(self, key: str) -> bool:
        """
        Check whether ``key`` exists.

        Raises:
            StorageError: On any status other than 2xx or 404
        """
        try:
            response = self.session.head(self.url(key), timeout=self.timeout)
        except httpx.HTTPError as e:
            raise StorageError(f"existence check failed ({e})", key) from e
        if response.status_code == HTTP_STATUS_NOT_FOUND:
            return False
        if response.is_error:
            raise StorageError(f"existence check failed with status {response.status_code}", key)
        return True

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "HTTPStorage":
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[BaseException], exc_tb: Optional[Any]) -> None:
        self.close()


__all__ = ["HTTPStorage"]
