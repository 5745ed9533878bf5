"""
Reporting and logging utilities for transfer operations.

Summaries are logged at WARNING level so they are visible without -d.
"""

import logging
from typing import Optional

from ..models.results import DownloadResult, PushResult
from ..utils.constants import BYTES_PER_KB, FILE_SIZE_UNITS


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count in human-readable form.

    Examples:
        >>> format_file_size(0)
        '0 B'
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size_bytes == 0:
        return "0 B"

    i = 0
    size_float = float(size_bytes)
    while size_float >= BYTES_PER_KB and i < len(FILE_SIZE_UNITS) - 1:
        size_float /= BYTES_PER_KB
        i += 1

    return f"{size_float:.1f} {FILE_SIZE_UNITS[i]}"


def format_count_with_unit(count: int, unit: str, *, singular: Optional[str] = None) -> str:
    """
    Format a count with simple pluralization.

    Examples:
        >>> format_count_with_unit(1, "object")
        '1 object'
        >>> format_count_with_unit(3, "object")
        '3 objects'
    """
    if count == 1:
        return f"{count} {singular or unit}"
    return f"{count} {unit if unit.endswith('s') else unit + 's'}"


def log_push_summary(result: PushResult) -> None:
    """Log the outcome of a push."""
    logging.warning(
        "Push complete: dataset '%s' (%s), %s, %s in %.1fs",
        result.name,
        result.dataset_id,
        format_count_with_unit(result.object_count, "object"),
        format_file_size(result.bytes_transferred),
        result.duration,
    )
    for key in result.keys:
        logging.debug("  - %s", key)


def log_download_summary(result: DownloadResult) -> None:
    """Log the outcome of a download."""
    logging.warning(
        "Download complete: dataset %s into %s, %s, %s in %.1fs",
        result.dataset_id,
        result.local_dir,
        format_count_with_unit(len(result.keys), "object"),
        format_file_size(result.bytes_transferred),
        result.duration,
    )
    if result.polls > 1:
        logging.info("Waited for upload completion (%d status checks)", result.polls)


__all__ = ["format_file_size", "format_count_with_unit", "log_push_summary", "log_download_summary"]
