"""
Transfer service for high-level dataset operations.

This module wires the validated settings into the credential chain, the
dataset API client, storage backends and the TransferManager, and exposes
push, download and describe operations for the CLI.
"""

import logging
from functools import partial
from typing import Any, Optional, Tuple

from ..api import DatasetClient, ProviderAuth
from ..credentials import ChainProvider, build_credential_chain
from ..exceptions import StorageError
from ..models.config import Settings
from ..models.context import DownloadContext, PushContext
from ..models.dataset import DatasetSummary
from ..models.results import DownloadResult, PushResult
from ..storage import create_storage
from ..transfer import (
    DownloadConfig,
    ProgressChannel,
    ProgressReporter,
    TransferManager,
    download,
    get_remote_dataset_size,
    log_download_summary,
    log_push_summary,
)
from ..utils.cancellation import CancelToken


class TransferService:
    """
    High-level service for dataset transfers.

    One service holds one credential chain and one dataset API session; it
    must be closed (or used as a context manager) when done.
    """

    def __init__(self, settings: Settings, dataset_client: Optional[DatasetClient] = None) -> None:
        """
        Initialize the transfer service.

        Args:
            settings: Validated configuration
            dataset_client: Optional preconfigured dataset API client
        """
        self.settings = settings
        self.credentials: ChainProvider = build_credential_chain(settings.auth)
        self.auth = ProviderAuth(self.credentials)
        self.dataset_client = dataset_client or DatasetClient(
            settings.api.base_url,
            settings.api.project_id,
            auth=self.auth,
            timeout=settings.api.timeout,
        )
        self.manager = TransferManager(
            self.dataset_client,
            settings.storage,
            settings.archiver,
            storage_factory=partial(create_storage, auth=self.auth),
            upload_ttl=settings.transfer.upload_ttl,
        )

    def push(
        self,
        context: PushContext,
        reporter: Optional[ProgressReporter] = None,
        cancel: Optional[CancelToken] = None,
    ) -> PushResult:
        """
        Create a dataset and push a local directory into it.

        Args:
            context: Push context with the local path and dataset name
            reporter: Called with the cumulative number of bytes uploaded
            cancel: Optional cancellation token

        Returns:
            PushResult describing the upload
        """
        logging.info("Pushing %s", context.local_path)
        with self.manager.create(context.name or "") as handle:
            result = handle.push(context.local_path, reporter=reporter, cancel=cancel)
        log_push_summary(result)
        return result

    def download(
        self,
        context: DownloadContext,
        progress: Optional[ProgressChannel] = None,
        cancel: Optional[CancelToken] = None,
    ) -> DownloadResult:
        """
        Wait for a dataset's upload to finish and download it.

        The progress channel is closed when this call returns or raises.

        Args:
            context: Download context with the dataset ID and destination
            progress: Optional channel receiving cumulative byte counts
            cancel: Optional cancellation token

        Returns:
            DownloadResult describing the download
        """
        try:
            with self.manager.open(context.dataset_id) as handle:
                config = DownloadConfig(
                    status_oracle=self.dataset_client,
                    data_client=handle,
                    local_dir=context.local_dir,
                    dataset_id=context.dataset_id,
                    concurrency=context.workers(self.settings.transfer.concurrency),
                    progress=progress,
                )
                result = download(config, cancel)
        finally:
            if progress is not None and not progress.closed:
                progress.close()
        log_download_summary(result)
        return result

    def describe(self, dataset_id: str) -> Tuple[DatasetSummary, Optional[int]]:
        """
        Describe a dataset and, once uploaded, its total archive size.

        Returns:
            Tuple of (dataset summary, size in bytes or None)
        """
        with self.manager.open(dataset_id) as handle:
            if not handle.dataset.is_uploaded:
                return handle.dataset, None
            missing = handle.missing_keys()
            if missing:
                logging.warning(
                    "Dataset %s is marked uploaded but %d object(s) are missing: %s",
                    dataset_id,
                    len(missing),
                    ", ".join(missing),
                )
            try:
                size = get_remote_dataset_size(handle)
            except StorageError as e:
                logging.warning("Could not read metadata of dataset %s: %s", dataset_id, e)
                size = None
            return handle.dataset, size

    def close(self) -> None:
        """Close the dataset API session."""
        self.dataset_client.close()

    def __enter__(self) -> "TransferService":
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[BaseException], exc_tb: Optional[Any]) -> None:
        self.close()


__all__ = ["TransferService"]
