"""
Download orchestration for datasets.

A download first waits for the dataset's upload to succeed, bounded by the
expiry the uploader declared, and then fetches the dataset's archive objects
into a local directory with a pool of worker threads.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ConfigDict, Field

from ..exceptions import OperationCancelledError, UploadTimedOutError
from ..models.base import DatasetToolBaseModel
from ..models.results import DownloadResult
from ..protocols.dataset_protocol import DatasetStatusOracle
from ..protocols.transfer_protocol import DataClientProtocol
from ..utils.cancellation import CancelToken, raise_if_cancelled, wait_until
from ..utils.constants import (
    DEFAULT_MAX_WORKERS,
    MAX_WORKERS_LIMIT,
    POLL_BACKOFF_MULTIPLIER,
    POLL_INITIAL_SLEEP_INTERVAL,
    POLL_MAX_SLEEP_INTERVAL,
)
from .progress import ProgressChannel, ProgressCounter


class DownloadConfig(DatasetToolBaseModel):
    """
    Configuration of one dataset download.

    Attributes:
        status_oracle: Source of the dataset upload status
        data_client: Client fetching and extracting the dataset objects
        local_dir: Destination directory, must not exist or be empty
        dataset_id: Dataset to download
        concurrency: Number of worker threads
        progress: Optional channel receiving cumulative byte counts
        poll_interval: First wait between status checks in seconds
        max_poll_interval: Upper bound for the wait between status checks
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status_oracle: DatasetStatusOracle
    data_client: DataClientProtocol
    local_dir: str
    dataset_id: str
    concurrency: int = Field(default=DEFAULT_MAX_WORKERS, ge=1, le=MAX_WORKERS_LIMIT)
    progress: Optional[ProgressChannel] = None
    poll_interval: float = Field(default=POLL_INITIAL_SLEEP_INTERVAL, gt=0)
    max_poll_interval: float = Field(default=POLL_MAX_SLEEP_INTERVAL, gt=0)


def wait_for_upload(
    oracle: DatasetStatusOracle,
    dataset_id: str,
    cancel: Optional[CancelToken] = None,
    poll_interval: float = POLL_INITIAL_SLEEP_INTERVAL,
    max_poll_interval: float = POLL_MAX_SLEEP_INTERVAL,
) -> int:
    """
    Poll the dataset status until its upload has succeeded.

    Pending and uploading datasets are waited for with exponential backoff,
    but a wait never extends past the dataset's upload expiry. Once the
    expiry has passed without success the upload is considered abandoned.

    Args:
        oracle: Dataset status source
        dataset_id: Dataset to wait for
        cancel: Optional token that interrupts the wait
        poll_interval: First wait between status checks
        max_poll_interval: Upper bound for the wait between status checks

    Returns:
        Number of status checks performed

    Raises:
        UploadTimedOutError: If the expiry passed before the upload succeeded
        OperationCancelledError: If ``cancel`` is set while waiting
        DatasetNotFoundError: If the dataset does not exist
    """
    polls = 0
    interval = poll_interval
    while True:
        raise_if_cancelled(cancel)
        dataset = oracle.describe_dataset(dataset_id)
        polls += 1

        if dataset.is_uploaded:
            logging.debug("Dataset %s is uploaded after %d status check(s)", dataset_id, polls)
            return polls

        remaining = dataset.seconds_until_expiry()
        if remaining <= 0:
            raise UploadTimedOutError(dataset_id, dataset.upload_expire)

        logging.info(
            "Dataset %s is %s, waiting for the upload to finish (expires in %.0fs)",
            dataset_id,
            dataset.upload_status.value,
            remaining,
        )
        deadline = min(time.time() + interval, dataset.upload_expire)
        if wait_until(deadline, cancel):
            raise OperationCancelledError((cancel.reason if cancel else None) or "operation cancelled")
        interval = min(interval * POLL_BACKOFF_MULTIPLIER, max_poll_interval)


def _pull(
    client: DataClientProtocol, local_dir: str, key: str, counter: ProgressCounter, cancel: CancelToken
) -> Tuple[str, int]:
    raise_if_cancelled(cancel)
    logging.debug("Fetching object %s", key)
    return key, client.pull_object(local_dir, key, on_chunk=counter, cancel=cancel)


def fetch_objects(
    client: DataClientProtocol,
    local_dir: str,
    concurrency: int = DEFAULT_MAX_WORKERS,
    counter: Optional[ProgressCounter] = None,
    cancel: Optional[CancelToken] = None,
) -> List[str]:
    """
    Fetch every object of a dataset into ``local_dir`` concurrently.

    The destination is checked once up front. The first failing worker
    cancels the remaining ones and its error is raised.

    Returns:
        Keys that were fetched, in completion order
    """
    client.prepare_destination(local_dir)
    keys = client.keys()
    counter = counter or ProgressCounter()
    workers = cancel.child() if cancel is not None else CancelToken()

    logging.info("Downloading %d object(s) with %d workers", len(keys), concurrency)
    fetched: List[str] = []
    first_error: Optional[BaseException] = None

    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        futures: Dict[Future, str] = {
            executor.submit(_pull, client, local_dir, key, counter, workers): key for key in keys
        }
        try:
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                key = futures[future]
                try:
                    fetched.append(future.result()[0])
                except Exception as e:  # pylint: disable=broad-exception-caught
                    if first_error is not None:
                        logging.debug("Object %s failed after abort: %s", key, e)
                        continue
                    first_error = e
                    logging.error("Failed to download %s: %s", key, e)
                    workers.cancel(f"download aborted after failure of {key}")
                    for pending in futures:
                        pending.cancel()
        except BaseException:
            # KeyboardInterrupt in the waiting thread; stop the workers before the pool joins them
            workers.cancel("download interrupted")
            raise

    if first_error is not None:
        raise first_error
    client.finish_destination(local_dir)
    return fetched


def download(config: DownloadConfig, cancel: Optional[CancelToken] = None) -> DownloadResult:
    """
    Wait for a dataset's upload to succeed and download it.

    The progress channel, when given, is closed exactly once when the
    download ends, whether it succeeded or failed.

    Args:
        config: Download configuration
        cancel: Optional token cancelling the whole download

    Returns:
        DownloadResult describing the download

    Raises:
        UploadTimedOutError: If the upload expired before it succeeded
        OperationCancelledError: If ``cancel`` is set
        DestinationNotEmptyError: If the destination has entries
    """
    start = time.time()
    counter = ProgressCounter(config.progress)
    try:
        polls = wait_for_upload(
            config.status_oracle,
            config.dataset_id,
            cancel,
            poll_interval=config.poll_interval,
            max_poll_interval=config.max_poll_interval,
        )
        keys = fetch_objects(config.data_client, config.local_dir, config.concurrency, counter, cancel)
    finally:
        if config.progress is not None:
            config.progress.close()

    return DownloadResult(
        dataset_id=config.dataset_id,
        local_dir=config.local_dir,
        keys=keys,
        bytes_transferred=counter.total,
        polls=polls,
        duration=time.time() - start,
    )


def get_remote_dataset_size(client: Any) -> int:
    """
    Total archive size of a pushed dataset, read from its metadata object.

    Args:
        client: Transfer handle (or anything with read_metadata())

    Returns:
        Size in bytes
    """
    return client.read_metadata().size


__all__ = ["DownloadConfig", "download", "fetch_objects", "wait_for_upload", "get_remote_dataset_size"]
