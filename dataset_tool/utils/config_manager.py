"""
Configuration file handling.

The configuration is a TOML file with the sections [api], [auth], [storage],
[archiver] and [transfer]. Its location is, in order of precedence, the
--config option, the DATASET_TOOL_CONFIG environment variable and
~/.config/dataset-tool/config.toml.

Relative paths in the file (storage.root_dir, auth.token_file) are resolved
against the directory that contains the file, so a configuration can be
shipped together with a local object store.
"""

import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from ..exceptions import InvalidSpecificationError
from ..models.config import Settings
from .constants import CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH

# dotted keys holding filesystem paths
PATH_KEYS = ("storage.root_dir", "auth.token_file")

_MISSING = object()


def default_config_path() -> Path:
    """Configuration path used when none is given explicitly."""
    return Path(os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH).expanduser()


def _lookup(data: Any, key: str) -> Any:
    for part in key.split("."):
        if not isinstance(data, dict) or part not in data:
            return _MISSING
        data = data[part]
    return data


def _split_key(key: str) -> Tuple[str, str]:
    section, _, name = key.rpartition(".")
    return section, name


class ConfigManager:
    """
    Loads the configuration file once and gives access to it.

    Raw values are available through dotted keys (``get("api.base_url")``);
    settings() validates the whole file into the Settings model.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        self.config_path = Path(config_path).expanduser() if config_path else default_config_path()
        self._config: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """
        Read and parse the configuration file, once.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file cannot be read or is not valid TOML
        """
        if self._config is not None:
            return self._config

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "rb") as f:
                self._config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in configuration file {self.config_path}: {e}") from e
        except OSError as e:
            raise ValueError(f"Failed to load configuration from {self.config_path}: {e}") from e

        logging.debug("Loaded configuration from %s (sections: %s)", self.config_path, ", ".join(self._config))
        return self._config

    def reload(self) -> None:
        """Discard the cached content and read the file again."""
        self._config = None
        self.load()

    def get(self, key: str, default: Any = None) -> Any:
        """Value for a dotted key such as ``"archiver.shards"``, or ``default``."""
        value = _lookup(self.load(), key)
        return default if value is _MISSING or value is None else value

    def get_section(self, section: str) -> Dict[str, Any]:
        """A whole section as a dictionary, empty if the section is missing."""
        value = self.load().get(section, {})
        return value if isinstance(value, dict) else {}

    def has_key(self, key: str) -> bool:
        """Whether a dotted key is set. An unreadable file has no keys."""
        try:
            data = self.load()
        except (FileNotFoundError, ValueError):
            return False
        return _lookup(data, key) is not _MISSING

    def resolve_path(self, value: str) -> str:
        """Expand ``~`` and make ``value`` absolute relative to the configuration file."""
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.config_path.parent / path
        return str(path)

    def settings(self) -> Settings:
        """
        Validate the configuration into a Settings model.

        Raises:
            InvalidSpecificationError: If the configuration does not validate
        """
        data = copy.deepcopy(self.load())
        for key in PATH_KEYS:
            value = _lookup(data, key)
            if isinstance(value, str) and value:
                section, name = _split_key(key)
                data[section][name] = self.resolve_path(value)

        try:
            return Settings(**data)
        except ValidationError as e:
            raise InvalidSpecificationError(f"Invalid configuration in {self.config_path}: {e}") from e


__all__ = ["ConfigManager", "default_config_path"]
