"""
Validation helpers for user supplied specifications.

Everything in here runs before any I/O so malformed input is reported
immediately.
"""

import os
import re
from typing import Optional, Tuple

from ..exceptions import InvalidSpecificationError

# Dataset names are used in object keys and URLs
DATASET_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def validate_key_prefix(prefix: str) -> str:
    """
    Validate an archiver key prefix.

    Args:
        prefix: Empty string or a prefix ending in "/"

    Returns:
        The prefix unchanged

    Raises:
        InvalidSpecificationError: If the prefix does not end with a forward slash
    """
    if prefix and not prefix.endswith("/"):
        raise InvalidSpecificationError("archiver key prefix must end with a forward slash")
    return prefix


def validate_dataset_name(name: str) -> str:
    """Validate a dataset name, returning it unchanged."""
    if not DATASET_NAME_PATTERN.match(name):
        raise InvalidSpecificationError(
            f"invalid dataset name '{name}': use letters, digits, '.', '_' or '-' (max 128 characters)"
        )
    return name


def parse_input_specification(spec: str) -> Tuple[str, Optional[str]]:
    """
    Parse a push specification of the form LOCAL_PATH[:DATASET_NAME].

    Only the last colon separates the dataset name, so Windows drive letters
    ("C:\\data") are left in the path.

    Args:
        spec: Specification string from the command line

    Returns:
        Tuple of (absolute local path, dataset name or None)

    Raises:
        InvalidSpecificationError: If the specification is malformed
    """
    if not spec or not spec.strip():
        raise InvalidSpecificationError("input specification cannot be empty")

    path, name = spec, None
    head, sep, tail = spec.rpartition(":")
    if sep and head and os.sep not in tail and "/" not in tail and not re.match(r"^[A-Za-z]$", head):
        path, name = head, tail

    if not path:
        raise InvalidSpecificationError(f"invalid input specification, missing local path: '{spec}'")

    if name is not None:
        if not name:
            raise InvalidSpecificationError(f"invalid input specification, empty dataset name: '{spec}'")
        validate_dataset_name(name)

    return os.path.abspath(os.path.expanduser(path)), name


__all__ = [
    "DATASET_NAME_PATTERN",
    "validate_key_prefix",
    "validate_dataset_name",
    "parse_input_specification",
]
