"""Configuration models for dataset-tool."""

from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from ..utils.constants import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_SHARD_COUNT,
    DEFAULT_TOKEN_ENV,
    DEFAULT_UPLOAD_TTL,
    MAX_WORKERS_LIMIT,
)
from .base import DatasetToolBaseModel


class ApiConfig(DatasetToolBaseModel):
    """
    Dataset API location.

    Attributes:
        base_url: Base URL of the dataset API
        project_id: Project that owns the datasets
        timeout: Request timeout in seconds
    """

    base_url: str
    project_id: str
    timeout: float = Field(default=120, gt=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL: {v}")
        return v.rstrip("/")


class AuthConfig(DatasetToolBaseModel):
    """
    Credential provider settings, tried in the order they are listed.

    Attributes:
        token: Static bearer token
        token_env: Environment variable holding a bearer token
        token_file: JSON file caching a token and its expiry
        client_id: OAuth2 client ID for the client credentials grant
        client_secret: OAuth2 client secret
        token_url: OAuth2 token endpoint
    """

    token: Optional[str] = None
    token_env: Optional[str] = DEFAULT_TOKEN_ENV
    token_file: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    token_url: Optional[str] = None

    @model_validator(mode="after")
    def check_client_credentials(self) -> "AuthConfig":
        """client_id, client_secret and token_url must be given together."""
        given = [v is not None for v in (self.client_id, self.client_secret, self.token_url)]
        if any(given) and not all(given):
            raise ValueError("client_id, client_secret and token_url must be configured together")
        return self


class StorageConfig(DatasetToolBaseModel):
    """
    Storage backend settings.

    Attributes:
        backend: "http" for an HTTP object store, "local" for a directory
        endpoint: Object store base URL (http backend)
        root_dir: Directory holding buckets (local backend)
        timeout: Request timeout in seconds (http backend)
    """

    backend: Literal["http", "local"] = "http"
    endpoint: Optional[str] = None
    root_dir: Optional[str] = None
    timeout: float = Field(default=300, gt=0)

    @model_validator(mode="after")
    def check_backend_settings(self) -> "StorageConfig":
        """Each backend needs its own location setting."""
        if self.backend == "http" and not self.endpoint:
            raise ValueError("storage endpoint is required for the http backend")
        if self.backend == "local" and not self.root_dir:
            raise ValueError("storage root_dir is required for the local backend")
        return self


class ArchiverConfig(DatasetToolBaseModel):
    """
    Archiver settings.

    Attributes:
        type: "tar" for a single tar object, "sharded-tar" for a fixed number of tar objects
        key_prefix: Prefix for object keys; empty or ending with "/". When None
            the dataset root is used.
        shards: Number of objects written by the sharded archiver
        symlinks: How symbolic links are archived (preserve, skip or reject)
    """

    type: Literal["tar", "sharded-tar"] = "tar"
    key_prefix: Optional[str] = None
    shards: int = Field(default=DEFAULT_SHARD_COUNT, ge=1, le=1024)
    symlinks: Literal["preserve", "skip", "reject"] = "preserve"

    @field_validator("key_prefix")
    @classmethod
    def validate_prefix(cls, v: Optional[str]) -> Optional[str]:
        """Key prefixes must be empty or end in a forward slash."""
        if v and not v.endswith("/"):
            raise ValueError("archiver key prefix must end with a forward slash")
        return v


class TransferSettings(DatasetToolBaseModel):
    """
    Transfer tuning.

    Attributes:
        concurrency: Number of download workers
        upload_ttl: Seconds an upload may take before downloaders give up on it
    """

    concurrency: int = Field(default=DEFAULT_MAX_WORKERS, ge=1, le=MAX_WORKERS_LIMIT)
    upload_ttl: int = Field(default=DEFAULT_UPLOAD_TTL, gt=0)


class Settings(DatasetToolBaseModel):
    """Complete dataset-tool configuration as loaded from TOML."""

    api: ApiConfig
    auth: AuthConfig = Field(default_factory=AuthConfig)
    storage: StorageConfig
    archiver: ArchiverConfig = Field(default_factory=ArchiverConfig)
    transfer: TransferSettings = Field(default_factory=TransferSettings)


__all__ = [
    "ApiConfig",
    "AuthConfig",
    "StorageConfig",
    "ArchiverConfig",
    "TransferSettings",
    "Settings",
]
