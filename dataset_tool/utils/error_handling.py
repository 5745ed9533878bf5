"""
Error reporting for the command line layer.

Library code raises and wraps errors; these helpers sit at the edge (the CLI
commands) and turn an exception into log records a user can act on, and
optionally into an exit code.
"""

import logging
import sys
import traceback
from functools import wraps
from typing import Any, Callable, TypeVar

import httpx

from ..exceptions import (
    ArchiveError,
    CredentialChainError,
    DatasetNotFoundError,
    DestinationNotEmptyError,
    InvalidSpecificationError,
    OperationCancelledError,
    StorageError,
    UploadTimedOutError,
)
from .constants import EXIT_GENERAL_ERROR, HTTP_STATUS_FORBIDDEN, HTTP_STATUS_NOT_FOUND, HTTP_STATUS_UNAUTHORIZED

F = TypeVar("F", bound=Callable[..., Any])


def _request_suffix(error: httpx.HTTPError) -> str:
    # transport errors raised outside a request have no request attached
    try:
        request = error.request
    except RuntimeError:
        return ""
    return f" ({request.method} {request.url})"


def handle_http_error(error: httpx.HTTPError, operation: str, *, log_traceback: bool = True) -> None:
    """
    Log an HTTP error from the dataset API, the token endpoint or the object store.

    Args:
        error: The HTTP error
        operation: Operation that failed, e.g. "push"
        log_traceback: Also log the traceback at DEBUG level
    """
    suffix = _request_suffix(error)
    status_code = error.response.status_code if isinstance(error, httpx.HTTPStatusError) else None

    if status_code == HTTP_STATUS_UNAUTHORIZED:
        logging.error(
            "Authentication failed during %s%s: the credentials were rejected. "
            "Check the [auth] section of the configuration file.",
            operation,
            suffix,
        )
    elif status_code == HTTP_STATUS_FORBIDDEN:
        logging.error(
            "Authorization failed during %s%s: the credentials have no access to this project or bucket.",
            operation,
            suffix,
        )
    elif status_code == HTTP_STATUS_NOT_FOUND:
        logging.error("Resource not found during %s%s: %s", operation, suffix, error)
    elif status_code is not None and status_code >= 500:
        logging.error("Server error during %s%s: %s", operation, suffix, error)
    else:
        logging.error("HTTP error during %s: %s%s", operation, error, suffix)

    if log_traceback:
        logging.debug("Traceback: %s", traceback.format_exc())


def handle_transfer_error(error: Exception, operation: str) -> None:
    """
    Log the well-known dataset-tool errors with a user facing message.

    Anything else is reported through handle_generic_error().
    """
    if isinstance(error, UploadTimedOutError):
        logging.error("%s failed: the upload of dataset %s was abandoned by its uploader", operation, error.dataset_id)
    elif isinstance(error, OperationCancelledError):
        logging.error("%s was cancelled: %s", operation, error)
    elif isinstance(error, DatasetNotFoundError):
        logging.error("%s failed: dataset %s does not exist", operation, error.dataset_id)
    elif isinstance(error, DestinationNotEmptyError):
        logging.error("%s failed: destination %s must be empty or not exist", operation, error.path)
    elif isinstance(error, CredentialChainError):
        logging.error("%s failed: no credential provider succeeded", operation)
        for cause in error.errors:
            logging.error("  - %s", cause)
    elif isinstance(error, InvalidSpecificationError):
        logging.error("Invalid input for %s: %s", operation, error)
    elif isinstance(error, ArchiveError):
        logging.error("%s failed on the local filesystem: %s", operation, error)
        logging.debug("Traceback: %s", traceback.format_exc())
    elif isinstance(error, StorageError):
        logging.error("%s failed in the storage backend: %s", operation, error)
        logging.debug("Traceback: %s", traceback.format_exc())
    else:
        handle_generic_error(error, operation)


def handle_generic_error(error: Exception, operation: str, *, log_traceback: bool = True) -> None:
    """Log an error nothing more specific is known about."""
    logging.error("Unexpected error during %s: %s", operation, error)
    if log_traceback:
        logging.debug("Traceback: %s", traceback.format_exc())


def report_error(error: Exception, operation: str) -> None:
    """Log ``error`` with the handler matching its type."""
    if isinstance(error, httpx.HTTPError):
        handle_http_error(error, operation)
    else:
        handle_transfer_error(error, operation)


def with_error_handling(
    operation: str, *, exit_on_error: bool = False, exit_code: int = EXIT_GENERAL_ERROR, reraise: bool = True
) -> Callable[[F], F]:
    """
    Decorator reporting the exceptions of the wrapped function.

    KeyboardInterrupt and SystemExit are not intercepted.

    Args:
        operation: Operation name used in the log messages
        exit_on_error: Exit with ``exit_code`` after reporting
        exit_code: Exit code used with ``exit_on_error``
        reraise: Re-raise after reporting (ignored with ``exit_on_error``);
            otherwise the wrapper returns None

    Example:
        @with_error_handling("download", exit_on_error=True)
        def download(ctx, dataset_id, dest):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:  # pylint: disable=broad-exception-caught
                report_error(e, operation)
                if exit_on_error:
                    sys.exit(exit_code)
                if reraise:
                    raise
            return None

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = [
    "handle_http_error",
    "handle_transfer_error",
    "handle_generic_error",
    "report_error",
    "with_error_handling",
]
