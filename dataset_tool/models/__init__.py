"""
Pydantic models for dataset-tool.

This package contains all Pydantic models used in the application:
- dataset: dataset API responses and the metadata object
- config: validated configuration file sections
- credentials: credential values and OAuth2 token responses
- context, results: CLI operation contexts and transfer results
"""

from .base import DatasetToolBaseModel, ApiBaseModel
from .dataset import UploadStatus, DatasetSummary, DatasetMetadata
from .config import ApiConfig, AuthConfig, StorageConfig, ArchiverConfig, TransferSettings, Settings
from .credentials import CredentialValue, OAuthTokenResponse
from .context import PushContext, DownloadContext
from .results import PushResult, DownloadResult

__all__ = [
    "DatasetToolBaseModel",
    "ApiBaseModel",
    "UploadStatus",
    "DatasetSummary",
    "DatasetMetadata",
    "ApiConfig",
    "AuthConfig",
    "StorageConfig",
    "ArchiverConfig",
    "TransferSettings",
    "Settings",
    "CredentialValue",
    "OAuthTokenResponse",
    "PushContext",
    "DownloadContext",
    "PushResult",
    "DownloadResult",
]
