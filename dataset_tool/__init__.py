"""
dataset-tool - Move directory trees between a local filesystem and a remote store.

This package archives directory trees into keyed objects, pushes them to a
storage backend under a dataset managed by the dataset API, and downloads
them again once the upload has been declared successful.
"""

from ._version import __version__

__author__ = "Dataset Tooling Team"

# Import main classes and functions for easy access
from .api import DatasetClient, ProviderAuth
from .archiver import ShardedTarArchiver, TarArchiver, create_archiver
from .credentials import ChainProvider, build_credential_chain
from .storage import HTTPStorage, LocalStorage, create_storage
from .transfer import DownloadConfig, TransferHandle, TransferManager, download
from .utils import CancelToken, create_session_with_retry, get_logger, setup_logging
from .cli import main as cli_main, cli as cli_group

__all__ = [
    "__version__",
    "DatasetClient",
    "ProviderAuth",
    "TarArchiver",
    "ShardedTarArchiver",
    "create_archiver",
    "ChainProvider",
    "build_credential_chain",
    "HTTPStorage",
    "LocalStorage",
    "create_storage",
    "DownloadConfig",
    "TransferHandle",
    "TransferManager",
    "download",
    "CancelToken",
    "create_session_with_retry",
    "get_logger",
    "setup_logging",
    "cli_main",
    "cli_group",
]
