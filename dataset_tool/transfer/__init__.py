"""
Transfer operations for datasets.

This package provides:
- manager: TransferManager and TransferHandle for push and pull
- download: the download orchestrator waiting for upload completion
- progress: progress channel and counters
- reporting: transfer summaries
"""

from .download import DownloadConfig, download, fetch_objects, get_remote_dataset_size, wait_for_upload
from .manager import StorageFactory, TransferHandle, TransferManager, generate_dataset_name
from .progress import ProgressChannel, ProgressCounter, ProgressReporter, discard_reporter
from .reporting import format_count_with_unit, format_file_size, log_download_summary, log_push_summary

__all__ = [
    "DownloadConfig",
    "download",
    "fetch_objects",
    "get_remote_dataset_size",
    "wait_for_upload",
    "StorageFactory",
    "TransferHandle",
    "TransferManager",
    "generate_dataset_name",
    "ProgressChannel",
    "ProgressCounter",
    "ProgressReporter",
    "discard_reporter",
    "format_count_with_unit",
    "format_file_size",
    "log_download_summary",
    "log_push_summary",
]
