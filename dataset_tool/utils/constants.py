"""
Central constants for the dataset-tool package.

This module consolidates all constants used throughout the codebase
to eliminate magic numbers and strings.
"""

# ============================================================================
# Archive Constants
# ============================================================================

# Object key written by the single-object tar archiver
TAR_ARCHIVER_KEY = "archive.tar"

# Object key template for the sharded tar archiver
SHARDED_TAR_ARCHIVER_KEY = "archive-{index:04d}.tar"

# Canonical separator used for tar header names and object keys
ARCHIVE_PATH_SEPARATOR = "/"

# Prefix for temporary archive buffers
TEMP_FILE_PREFIX = "tar_archiver_"

# Symlink handling policies
SYMLINK_POLICIES = ["preserve", "skip", "reject"]

# Default number of shards for the sharded tar archiver
DEFAULT_SHARD_COUNT = 8

# ============================================================================
# Dataset Constants
# ============================================================================

# Name of the metadata object stored under the dataset root
METADATA_OBJECT_NAME = "metadata.json"

# Prefix for generated dataset names
GENERATED_NAME_PREFIX = "d-"

# Seconds an upload may stay in progress before downloaders give up
DEFAULT_UPLOAD_TTL = 3600

# ============================================================================
# Transfer Constants
# ============================================================================

# Default number of concurrent workers for downloads
DEFAULT_MAX_WORKERS = 4

# Upper bound for the worker pool
MAX_WORKERS_LIMIT = 64

# Chunk size used when streaming objects to and from storage
DEFAULT_CHUNK_SIZE = 64 * 1024

# ============================================================================
# Polling Constants
# ============================================================================

# Initial interval between dataset status checks (seconds)
POLL_INITIAL_SLEEP_INTERVAL = 2

# Maximum interval between dataset status checks (seconds)
POLL_MAX_SLEEP_INTERVAL = 30

# Exponential backoff multiplier for status polling
POLL_BACKOFF_MULTIPLIER = 1.5

# ============================================================================
# API and Network Constants
# ============================================================================

# Default timeout for HTTP requests (seconds)
DEFAULT_TIMEOUT = 120

# Token refresh buffer - treat tokens as expired this many seconds early
TOKEN_REFRESH_BUFFER = 60

# Default environment variable holding a bearer token
DEFAULT_TOKEN_ENV = "DATASET_TOOL_TOKEN"

# ============================================================================
# Exit Codes
# ============================================================================

EXIT_GENERAL_ERROR = 1
EXIT_USER_INTERRUPT = 130  # User pressed Ctrl+C

# ============================================================================
# Default Paths
# ============================================================================

# Default configuration file path
DEFAULT_CONFIG_PATH = "~/.config/dataset-tool/config.toml"

# Environment variable overriding the default configuration path
CONFIG_PATH_ENV = "DATASET_TOOL_CONFIG"

# ============================================================================
# HTTP Status Codes
# ============================================================================

HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404

# ============================================================================
# File Size Units
# ============================================================================

FILE_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]

BYTES_PER_KB = 1024


__all__ = [
    # Archive
    "TAR_ARCHIVER_KEY",
    "SHARDED_TAR_ARCHIVER_KEY",
    "ARCHIVE_PATH_SEPARATOR",
    "TEMP_FILE_PREFIX",
    "SYMLINK_POLICIES",
    "DEFAULT_SHARD_COUNT",
    # Dataset
    "METADATA_OBJECT_NAME",
    "GENERATED_NAME_PREFIX",
    "DEFAULT_UPLOAD_TTL",
    # Transfer
    "DEFAULT_MAX_WORKERS",
    "MAX_WORKERS_LIMIT",
    "DEFAULT_CHUNK_SIZE",
    # Polling
    "POLL_INITIAL_SLEEP_INTERVAL",
    "POLL_MAX_SLEEP_INTERVAL",
    "POLL_BACKOFF_MULTIPLIER",
    # API and Network
    "DEFAULT_TIMEOUT",
    "TOKEN_REFRESH_BUFFER",
    "DEFAULT_TOKEN_ENV",
    # Exit Codes
    "EXIT_GENERAL_ERROR",
    "EXIT_USER_INTERRUPT",
    # Default Paths
    "DEFAULT_CONFIG_PATH",
    "CONFIG_PATH_ENV",
    # HTTP Status Codes
    "HTTP_STATUS_UNAUTHORIZED",
    "HTTP_STATUS_FORBIDDEN",
    "HTTP_STATUS_NOT_FOUND",
    # File Size
    "FILE_SIZE_UNITS",
    "BYTES_PER_KB",
]
