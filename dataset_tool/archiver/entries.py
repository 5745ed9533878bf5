"""
Filesystem entries as seen by the archivers.

Every entry of a source tree is classified into exactly one variant:
directories and regular files are archived with full fidelity, symbolic
links are handled according to the configured policy, and everything else
(fifos, devices, sockets) is an UnsupportedEntry.
"""

import os
import stat
from dataclasses import dataclass
from typing import Iterator, List, Union

from ..exceptions import ArchiveError
from ..utils.constants import ARCHIVE_PATH_SEPARATOR


@dataclass(frozen=True)
class DirectoryEntry:
    """A directory; archived as a header only."""

    path: str
    name: str
    mode: int
    mtime: float


@dataclass(frozen=True)
class RegularFileEntry:
    """A regular file; archived as a header followed by its content."""

    path: str
    name: str
    mode: int
    mtime: float
    size: int


@dataclass(frozen=True)
class SymlinkEntry:
    """A symbolic link; never dereferenced."""

    path: str
    name: str
    mode: int
    mtime: float
    target: str


@dataclass(frozen=True)
class UnsupportedEntry:
    """Anything else: fifo, character or block device, socket."""

    path: str
    name: str
    mode: int
    mtime: float
    kind: str
    rdev: int = 0


ArchiveEntry = Union[DirectoryEntry, RegularFileEntry, SymlinkEntry, UnsupportedEntry]


def to_archive_name(root: str, path: str) -> str:
    """Relative path of ``path`` under ``root`` using "/" as separator."""
    rel = os.path.relpath(path, root)
    return ARCHIVE_PATH_SEPARATOR.join(rel.split(os.sep))


def to_host_path(destination: str, name: str) -> str:
    """
    Map an archive name back onto the host filesystem below ``destination``.

    Raises:
        ArchiveError: If the name is absolute or escapes the destination
    """
    parts = [p for p in name.split(ARCHIVE_PATH_SEPARATOR) if p not in ("", ".")]
    if name.startswith(ARCHIVE_PATH_SEPARATOR) or not parts or ".." in parts:
        raise ArchiveError("unsafe path in archive", name)
    if any(os.sep in p or (os.altsep and os.altsep in p) for p in parts):
        raise ArchiveError("unsafe path in archive", name)
    return os.path.join(destination, *parts)


def _kind_of(mode: int) -> str:
    if stat.S_ISFIFO(mode):
        return "fifo"
    if stat.S_ISCHR(mode):
        return "char-device"
    if stat.S_ISBLK(mode):
        return "block-device"
    if stat.S_ISSOCK(mode):
        return "socket"
    return "unknown"


def classify_entry(root: str, path: str) -> ArchiveEntry:
    """
    Classify the filesystem entry at ``path`` without following symlinks.

    Raises:
        ArchiveError: If the entry cannot be inspected
    """
    try:
        st = os.lstat(path)
    except OSError as e:
        raise ArchiveError("failed to stat file", path) from e

    name = to_archive_name(root, path)
    mode = stat.S_IMODE(st.st_mode)

    if stat.S_ISDIR(st.st_mode):
        return DirectoryEntry(path=path, name=name, mode=mode, mtime=st.st_mtime)
    if stat.S_ISREG(st.st_mode):
        return RegularFileEntry(path=path, name=name, mode=mode, mtime=st.st_mtime, size=st.st_size)
    if stat.S_ISLNK(st.st_mode):
        try:
            target = os.readlink(path)
        except OSError as e:
            raise ArchiveError("failed to read symbolic link", path) from e
        return SymlinkEntry(
            path=path,
            name=name,
            mode=mode,
            mtime=st.st_mtime,
            target=ARCHIVE_PATH_SEPARATOR.join(target.split(os.sep)),
        )
    return UnsupportedEntry(
        path=path, name=name, mode=mode, mtime=st.st_mtime, kind=_kind_of(st.st_mode), rdev=st.st_rdev
    )


def _sorted_children(directory: str) -> List[str]:
    try:
        with os.scandir(directory) as it:
            names = [entry.name for entry in it]
    except OSError as e:
        raise ArchiveError("failed to read directory", directory) from e
    return [os.path.join(directory, name) for name in sorted(names)]


def walk_entries(root: str) -> Iterator[ArchiveEntry]:
    """
    Walk ``root`` depth first, visiting directory children in lexical order.

    The root itself is not yielded. Symbolic links to directories are yielded
    as SymlinkEntry and never descended into.

    Raises:
        ArchiveError: If ``root`` is not a directory or any entry cannot be read
    """
    if not os.path.isdir(root):
        raise ArchiveError("failed to perform filesystem walk, not a directory", root)

    stack = list(reversed(_sorted_children(root)))
    while stack:
        path = stack.pop()
        entry = classify_entry(root, path)
        yield entry
        if isinstance(entry, DirectoryEntry):
            stack.extend(reversed(_sorted_children(path)))


__all__ = [
    "DirectoryEntry",
    "RegularFileEntry",
    "SymlinkEntry",
    "UnsupportedEntry",
    "ArchiveEntry",
    "classify_entry",
    "walk_entries",
    "to_archive_name",
    "to_host_path",
]
