"""
Utility modules for dataset-tool.

config_manager is not imported here because it depends on the models
package; import it as ``dataset_tool.utils.config_manager``.
"""

from .logger import setup_logging, WrappingFormatter, get_logger
from .session import create_session_with_retry
from .cancellation import CancelToken, raise_if_cancelled, wait_until
from .validation import parse_input_specification, validate_dataset_name, validate_key_prefix

from . import constants
from . import error_handling

__all__ = [
    "setup_logging",
    "WrappingFormatter",
    "get_logger",
    "create_session_with_retry",
    "CancelToken",
    "raise_if_cancelled",
    "wait_until",
    "parse_input_specification",
    "validate_dataset_name",
    "validate_key_prefix",
    "constants",
    "error_handling",
]
