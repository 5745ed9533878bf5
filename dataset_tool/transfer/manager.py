"""
Transfer manager and handles.

TransferManager creates or opens datasets through the dataset API and binds
each one to an archiver and a storage backend in a TransferHandle. Handles
push local directories into their dataset and pull them back out; they own
no remote state beyond the dataset ID and close() only releases local
resources.
"""

import io
import logging
import threading
import time
import uuid
from typing import Any, Callable, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from ..archiver import BaseTarArchiver, create_archiver
from ..exceptions import DatasetToolError, StorageError
from ..models.config import ArchiverConfig, StorageConfig
from ..models.dataset import DatasetMetadata, DatasetSummary, UploadStatus
from ..models.results import PushResult
from ..protocols.dataset_protocol import DatasetLifecycleProtocol
from ..protocols.storage_protocol import ChunkCallback, StorageProtocol
from ..storage import create_storage
from ..utils.cancellation import CancelToken
from ..utils.constants import DEFAULT_UPLOAD_TTL, GENERATED_NAME_PREFIX, METADATA_OBJECT_NAME
from ..utils.validation import validate_dataset_name
from .progress import ProgressCounter, ProgressReporter

# storage_factory(config, bucket) -> storage backend
StorageFactory = Callable[[StorageConfig, str], StorageProtocol]


def generate_dataset_name() -> str:
    """Generate a unique dataset name for pushes without an explicit name."""
    return f"{GENERATED_NAME_PREFIX}{uuid.uuid4().hex[:12]}"


class TransferHandle:
    """
    Binding of one dataset to an archiver and a storage backend.

    Handles are created by TransferManager and must be closed after use;
    they can be used as context managers.
    """

    def __init__(
        self,
        dataset: DatasetSummary,
        archiver: BaseTarArchiver,
        storage: StorageProtocol,
        dataset_client: DatasetLifecycleProtocol,
        upload_ttl: int = DEFAULT_UPLOAD_TTL,
    ) -> None:
        self._dataset = dataset
        self._archiver = archiver
        self._storage = storage
        self._client = dataset_client
        self._upload_ttl = upload_ttl
        self._closed = False
        # directory modes of objects pulled one at a time, applied by finish_destination()
        self._directory_modes: List[Tuple[str, int]] = []
        self._modes_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"TransferHandle(dataset_id={self.dataset_id!r}, name={self.name!r}, archiver={self._archiver!r})"

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def dataset_id(self) -> str:
        return self._dataset.dataset_id

    @property
    def name(self) -> str:
        return self._dataset.name

    @property
    def dataset(self) -> DatasetSummary:
        """Last known dataset description."""
        return self._dataset

    @property
    def archiver(self) -> BaseTarArchiver:
        return self._archiver

    @property
    def storage(self) -> StorageProtocol:
        return self._storage

    @property
    def metadata_key(self) -> str:
        return f"{self._dataset.key_prefix}{METADATA_OBJECT_NAME}"

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise DatasetToolError(f"transfer handle for {self.dataset_id} is closed")

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def keys(self) -> List[str]:
        """Archive object keys that make up the dataset."""
        keys: List[str] = []
        self._archiver.index(keys.append)
        return keys

    def missing_keys(self) -> List[str]:
        """Archive object keys not present in storage."""
        self._check_open()
        return [key for key in self.keys() if not self._storage.exists(key)]

    def read_metadata(self) -> DatasetMetadata:
        """
        Read the metadata object written at the end of a push.

        Raises:
            StorageError: If the metadata object cannot be read
            DatasetToolError: If its content is invalid
        """
        self._check_open()
        buf = io.BytesIO()
        self._storage.get(self.metadata_key, buf)
        try:
            return DatasetMetadata.model_validate_json(buf.getvalue())
        except ValidationError as e:
            raise DatasetToolError(f"invalid dataset metadata for {self.dataset_id}: {e}") from e

    # ------------------------------------------------------------------
    # Push / pull
    # ------------------------------------------------------------------

    def push(
        self,
        local_path: str,
        reporter: Optional[ProgressReporter] = None,
        cancel: Optional[CancelToken] = None,
    ) -> PushResult:
        """
        Archive ``local_path`` and upload every object of the archive.

        The dataset is marked as uploading before the first object is stored
        and only marked successful after all objects and the metadata object
        are stored, so downloaders never observe a partial upload.

        Args:
            local_path: Directory to upload
            reporter: Called with the cumulative number of bytes uploaded
            cancel: Optional token checked between chunks

        Returns:
            PushResult describing the upload

        Raises:
            DatasetToolError: If the dataset is already uploaded
        """
        self._check_open()
        if not self._dataset.upload_status.can_transition_to(UploadStatus.UPLOADING):
            raise DatasetToolError(
                f"dataset {self.dataset_id} is already {self._dataset.upload_status.value} and cannot be pushed again"
            )
        start = time.time()
        counter = ProgressCounter(reporter)
        keys: List[str] = []

        expire = start + self._upload_ttl
        self._dataset = self._update_status(lambda: self._client.start_upload(self.dataset_id, expire), "start upload")
        logging.info("Pushing %s to dataset %s", local_path, self.dataset_id)

        def upload(key: str, reader: Any) -> None:
            logging.debug("Uploading object %s", key)
            self._storage.put(key, reader, on_chunk=counter, cancel=cancel)
            keys.append(key)

        self._archiver.archive(local_path, upload, cancel)

        metadata = DatasetMetadata(size=counter.total, keys=keys, archiver=self._archiver.archiver_type)
        self._storage.put(self.metadata_key, io.BytesIO(metadata.model_dump_json().encode("utf-8")), cancel=cancel)

        self._dataset = self._update_status(lambda: self._client.finish_upload(self.dataset_id), "finish upload")

        return PushResult(
            dataset_id=self.dataset_id,
            name=self.name,
            keys=keys,
            bytes_transferred=counter.total,
            duration=time.time() - start,
        )

    def _update_status(self, update: Callable[[], DatasetSummary], operation: str) -> DatasetSummary:
        try:
            return update()
        except httpx.HTTPError as e:
            raise DatasetToolError(f"failed to {operation} for dataset {self.dataset_id}: {e}") from e

    def prepare_destination(self, local_dir: str) -> None:
        """Create ``local_dir`` if missing and fail if it is not empty."""
        self._archiver.prepare_destination(local_dir)

    def pull_object(
        self,
        local_dir: str,
        key: str,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Fetch one archive object and extract it into a prepared ``local_dir``.

        Call finish_destination() once every object is pulled.

        Returns:
            Number of bytes fetched
        """
        self._check_open()
        fetched = 0

        def fetch(object_key: str, writer: Any) -> None:
            nonlocal fetched
            fetched = self._storage.get(object_key, writer, on_chunk=on_chunk, cancel=cancel)

        directory_modes: List[Tuple[str, int]] = []
        self._archiver.extract_object(local_dir, key, fetch, cancel, directory_modes=directory_modes)
        with self._modes_lock:
            self._directory_modes.extend(directory_modes)
        return fetched

    def finish_destination(self, local_dir: str) -> None:
        """Apply the directory modes of every object pulled with pull_object()."""
        with self._modes_lock:
            directory_modes, self._directory_modes = self._directory_modes, []
        self._archiver.apply_directory_modes(directory_modes)
        logging.debug("Restored %d directory mode(s) in %s", len(directory_modes), local_dir)

    def pull(
        self,
        local_path: str,
        reporter: Optional[ProgressReporter] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Rebuild the dataset tree in ``local_path``, one object at a time.

        Returns:
            Number of bytes fetched
        """
        self._check_open()
        counter = ProgressCounter(reporter)

        def fetch(key: str, writer: Any) -> None:
            self._storage.get(key, writer, on_chunk=counter, cancel=cancel)

        self._archiver.unarchive(local_path, fetch, cancel)
        return counter.total

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release local resources. Remote data is left untouched."""
        if self._closed:
            return
        self._closed = True
        self._storage.close()
        logging.debug("Closed transfer handle for %s", self.dataset_id)

    def __enter__(self) -> "TransferHandle":
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[BaseException], exc_tb: Optional[Any]) -> None:
        self.close()


class TransferManager:
    """Factory for transfer handles."""

    def __init__(
        self,
        dataset_client: DatasetLifecycleProtocol,
        storage_config: StorageConfig,
        archiver_config: Optional[ArchiverConfig] = None,
        storage_factory: Optional[StorageFactory] = None,
        upload_ttl: int = DEFAULT_UPLOAD_TTL,
        temp_dir: Optional[str] = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            dataset_client: Dataset API client
            storage_config: Storage backend configuration
            archiver_config: Archiver configuration (single tar object if None)
            storage_factory: Builds the storage backend for a bucket
            upload_ttl: Seconds a push may take before downloaders give up
            temp_dir: Directory for archive buffers
        """
        self.dataset_client = dataset_client
        self.storage_config = storage_config
        self.archiver_config = archiver_config or ArchiverConfig()
        self.storage_factory: StorageFactory = storage_factory or create_storage
        self.upload_ttl = upload_ttl
        self.temp_dir = temp_dir

    def create(self, name: str = "") -> TransferHandle:
        """
        Create a new dataset and return a handle bound to it.

        Args:
            name: Dataset name, generated when empty

        Raises:
            InvalidSpecificationError: If the name is invalid
            DatasetToolError: If the dataset cannot be created
            StorageError: If the storage backend cannot be initialized
        """
        name = validate_dataset_name(name) if name else generate_dataset_name()
        try:
            dataset = self.dataset_client.create_dataset(name)
        except httpx.HTTPError as e:
            raise DatasetToolError(f"failed to create dataset {name}: {e}") from e
        return self._bind(dataset)

    def open(self, dataset_id: str) -> TransferHandle:
        """
        Return a handle bound to an existing dataset.

        Raises:
            DatasetNotFoundError: If the dataset does not exist
        """
        try:
            dataset = self.dataset_client.describe_dataset(dataset_id)
        except httpx.HTTPError as e:
            raise DatasetToolError(f"failed to open dataset {dataset_id}: {e}") from e
        return self._bind(dataset)

    def _bind(self, dataset: DatasetSummary) -> TransferHandle:
        archiver = create_archiver(self.archiver_config, default_prefix=dataset.key_prefix, temp_dir=self.temp_dir)
        try:
            storage = self.storage_factory(self.storage_config, dataset.bucket)
        except (OSError, ValueError) as e:
            raise StorageError(f"failed to initialize storage backend ({e})", dataset.bucket) from e
        logging.debug("Bound dataset %s to %r", dataset.dataset_id, archiver)
        return TransferHandle(dataset, archiver, storage, self.dataset_client, upload_ttl=self.upload_ttl)


__all__ = ["TransferManager", "TransferHandle", "StorageFactory", "generate_dataset_name"]
