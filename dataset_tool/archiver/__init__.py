"""
Archivers that turn a directory tree into keyed objects and back.

Modules:
    - entries: classification of filesystem entries and path encoding
    - tar_archiver: single object and sharded tar archivers
"""

from typing import Optional

from ..models.config import ArchiverConfig
from .entries import (
    ArchiveEntry,
    DirectoryEntry,
    RegularFileEntry,
    SymlinkEntry,
    UnsupportedEntry,
    classify_entry,
    walk_entries,
)
from .tar_archiver import BaseTarArchiver, ShardedTarArchiver, TarArchiver, temporary_buffer


def create_archiver(
    config: Optional[ArchiverConfig] = None, default_prefix: str = "", temp_dir: Optional[str] = None
) -> BaseTarArchiver:
    """
    Build an archiver from its configuration.

    Args:
        config: Archiver configuration (defaults to a single tar object)
        default_prefix: Key prefix used when the configuration sets none,
            typically the dataset root
        temp_dir: Directory for temporary buffers

    Returns:
        Configured archiver instance
    """
    config = config or ArchiverConfig()
    prefix = config.key_prefix if config.key_prefix is not None else default_prefix

    if config.type == "sharded-tar":
        return ShardedTarArchiver(key_prefix=prefix, shards=config.shards, symlinks=config.symlinks, temp_dir=temp_dir)
    return TarArchiver(key_prefix=prefix, symlinks=config.symlinks, temp_dir=temp_dir)


__all__ = [
    "create_archiver",
    "BaseTarArchiver",
    "TarArchiver",
    "ShardedTarArchiver",
    "temporary_buffer",
    "ArchiveEntry",
    "DirectoryEntry",
    "RegularFileEntry",
    "SymlinkEntry",
    "UnsupportedEntry",
    "classify_entry",
    "walk_entries",
]
