"""
Tar based archivers.

TarArchiver writes a whole directory tree into one POSIX tar object.
ShardedTarArchiver spreads the entries over a fixed number of tar objects so
downloads can fetch and extract them concurrently. Both share the same
entry encoding:

- header names are relative paths joined with "/" on every platform
- directories are header-only records, which keeps empty directories
- regular files are a header followed by their bytes
- symbolic links are header-only SYMTYPE records (policy "preserve"), left
  out (policy "skip") or refused (policy "reject")
- fifos and devices are header-only records that extraction skips; sockets
  cannot be represented in tar and are refused

Every object is staged in a temporary file because its size is only known
once the walk is finished; the temporary files are removed on every exit
path.
"""

import logging
import os
import shutil
import tarfile
import tempfile
import zlib
from contextlib import ExitStack, contextmanager
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from ..exceptions import (
    ArchiveError,
    DatasetToolError,
    DestinationNotEmptyError,
    UnsupportedEntryError,
)
from ..protocols.archiver_protocol import ArchiveVisitor, IndexVisitor, ObjectFetcher
from ..utils.cancellation import CancelToken, raise_if_cancelled
from ..utils.constants import (
    ARCHIVE_PATH_SEPARATOR,
    DEFAULT_SHARD_COUNT,
    SHARDED_TAR_ARCHIVER_KEY,
    SYMLINK_POLICIES,
    TAR_ARCHIVER_KEY,
    TEMP_FILE_PREFIX,
)
from ..utils.validation import validate_key_prefix
from .entries import (
    ArchiveEntry,
    DirectoryEntry,
    RegularFileEntry,
    SymlinkEntry,
    UnsupportedEntry,
    to_host_path,
    walk_entries,
)

# tar types for the unsupported entries tar can still describe
_UNSUPPORTED_TAR_TYPES = {
    "fifo": tarfile.FIFOTYPE,
    "char-device": tarfile.CHRTYPE,
    "block-device": tarfile.BLKTYPE,
}


@contextmanager
def temporary_buffer(temp_dir: Optional[str] = None) -> Iterator[BinaryIO]:
    """
    Provide an anonymous temporary file that is removed when the block exits.

    Raises:
        ArchiveError: If the temporary file cannot be created
    """
    try:
        buf = tempfile.TemporaryFile(prefix=TEMP_FILE_PREFIX, dir=temp_dir)
    except OSError as e:
        raise ArchiveError("failed to create temporary file", temp_dir or tempfile.gettempdir()) from e
    try:
        yield buf  # type: ignore[misc]
    finally:
        buf.close()


class BaseTarArchiver:
    """
    Shared implementation of the tar archivers.

    Subclasses decide which object keys exist and which key an entry goes to.
    """

    archiver_type = "tar"

    def __init__(self, key_prefix: str = "", symlinks: str = "preserve", temp_dir: Optional[str] = None) -> None:
        """
        Initialize the archiver.

        Args:
            key_prefix: Prefix for object keys, empty or ending with "/"
            symlinks: Symlink policy: "preserve", "skip" or "reject"
            temp_dir: Directory for temporary buffers (system default if None)

        Raises:
            InvalidSpecificationError: If the prefix or policy is invalid
        """
        self.key_prefix = validate_key_prefix(key_prefix)
        if symlinks not in SYMLINK_POLICIES:
            raise ValueError(f"Invalid symlink policy '{symlinks}'. Valid policies are: {', '.join(SYMLINK_POLICIES)}")
        self.symlinks = symlinks
        self.temp_dir = temp_dir

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key_prefix={self.key_prefix!r}, symlinks={self.symlinks!r})"

    # ------------------------------------------------------------------
    # Key layout
    # ------------------------------------------------------------------

    def object_keys(self) -> List[str]:
        """All object keys of an archive of this shape, in a fixed order."""
        raise NotImplementedError

    def key_for(self, name: str) -> str:
        """Object key that stores the entry with archive name ``name``."""
        raise NotImplementedError

    def index(self, visit: IndexVisitor) -> None:
        """Call ``visit`` for all object keys that are part of the archive."""
        for key in self.object_keys():
            visit(key)

    # ------------------------------------------------------------------
    # Archiving
    # ------------------------------------------------------------------

    def archive(self, source_path: str, visit: ArchiveVisitor, cancel: Optional[CancelToken] = None) -> None:
        """
        Archive ``source_path`` and call ``visit(key, reader)`` for every object.

        Args:
            source_path: Directory to archive
            visit: Called once per object key with a seekable reader at offset 0
            cancel: Optional token checked between entries

        Raises:
            ArchiveError: If the walk or any read fails
            OperationCancelledError: If ``cancel`` is cancelled
        """
        keys = self.object_keys()
        logging.debug("Archiving %s into %d object(s)", source_path, len(keys))

        with ExitStack() as stack:
            buffers: Dict[str, BinaryIO] = {}
            for key in keys:
                buffers[key] = stack.enter_context(temporary_buffer(self.temp_dir))

            self._write_archives(source_path, buffers, cancel)

            for key in keys:
                raise_if_cancelled(cancel)
                buf = buffers[key]
                try:
                    buf.seek(0)
                except OSError as e:
                    raise ArchiveError("failed to seek to beginning of file", key) from e
                visit(key, buf)

    def _write_archives(self, source_path: str, buffers: Dict[str, BinaryIO], cancel: Optional[CancelToken]) -> None:
        writers: Dict[str, tarfile.TarFile] = {}
        try:
            for key, buf in buffers.items():
                writers[key] = tarfile.open(fileobj=buf, mode="w", format=tarfile.PAX_FORMAT)

            count = 0
            for entry in walk_entries(source_path):
                raise_if_cancelled(cancel)
                if self._write_entry(writers[self.key_for(entry.name)], entry):
                    count += 1
            logging.debug("Wrote %d archive entries from %s", count, source_path)
        finally:
            for writer in writers.values():
                writer.close()

    def _write_entry(self, tar: tarfile.TarFile, entry: ArchiveEntry) -> bool:
        """Write one entry, returning False if the entry was left out."""
        info = tarfile.TarInfo(entry.name)
        info.mode = entry.mode
        info.mtime = int(entry.mtime)

        if isinstance(entry, DirectoryEntry):
            info.type = tarfile.DIRTYPE
            self._add(tar, info, entry.path)
            return True

        if isinstance(entry, RegularFileEntry):
            info.type = tarfile.REGTYPE
            info.size = entry.size
            try:
                with open(entry.path, "rb") as f:
                    tar.addfile(info, f)
            except OSError as e:
                raise ArchiveError("failed to copy file content to archive", entry.path) from e
            return True

        if isinstance(entry, SymlinkEntry):
            if self.symlinks == "reject":
                raise UnsupportedEntryError("symbolic links are not allowed in datasets", entry.path)
            if self.symlinks == "skip":
                logging.debug("Skipping symbolic link %s", entry.path)
                return False
            info.type = tarfile.SYMTYPE
            info.linkname = entry.target
            self._add(tar, info, entry.path)
            return True

        if isinstance(entry, UnsupportedEntry):
            tar_type = _UNSUPPORTED_TAR_TYPES.get(entry.kind)
            if tar_type is None:
                raise UnsupportedEntryError(f"cannot archive {entry.kind}", entry.path)
            logging.warning("Archiving %s %s as a header only entry", entry.kind, entry.path)
            info.type = tar_type
            if tar_type in (tarfile.CHRTYPE, tarfile.BLKTYPE):
                info.devmajor = os.major(entry.rdev)
                info.devminor = os.minor(entry.rdev)
            self._add(tar, info, entry.path)
            return True

        raise TypeError(f"Unexpected archive entry: {entry!r}")

    @staticmethod
    def _add(tar: tarfile.TarFile, info: tarfile.TarInfo, path: str) -> None:
        try:
            tar.addfile(info)
        except (OSError, ValueError) as e:
            raise ArchiveError("failed to write tar header", path) from e

    # ------------------------------------------------------------------
    # Unarchiving
    # ------------------------------------------------------------------

    def prepare_destination(self, destination_path: str) -> None:
        """
        Create ``destination_path`` if it is missing, fail if it is not empty.

        Raises:
            DestinationNotEmptyError: If the directory has any entry
            ArchiveError: If the path is not a directory or cannot be created
        """
        try:
            with os.scandir(destination_path) as it:
                first = next(it, None)
        except FileNotFoundError:
            try:
                os.makedirs(destination_path)
            except OSError as e:
                raise ArchiveError("failed to create directory", destination_path) from e
            logging.debug("Created destination directory %s", destination_path)
            return
        except NotADirectoryError as e:
            raise ArchiveError("destination is not a directory", destination_path) from e
        except OSError as e:
            raise ArchiveError("failed to open directory", destination_path) from e

        if first is not None:
            raise DestinationNotEmptyError(destination_path)

    def unarchive(self, destination_path: str, fetch: ObjectFetcher, cancel: Optional[CancelToken] = None) -> None:
        """
        Rebuild the archived tree in ``destination_path``.

        The destination precondition is checked before anything is fetched, so
        a populated directory is never touched.

        Args:
            destination_path: Directory that must be empty or not exist
            fetch: Called as ``fetch(key, writer)`` to fill a temporary buffer
            cancel: Optional token checked between objects

        Raises:
            DestinationNotEmptyError: If the destination has entries
            ArchiveError: If extraction fails
        """
        self.prepare_destination(destination_path)
        directory_modes: List[Tuple[str, int]] = []
        for key in self.object_keys():
            raise_if_cancelled(cancel)
            self.extract_object(destination_path, key, fetch, cancel, directory_modes=directory_modes)
        self.apply_directory_modes(directory_modes)

    def extract_object(
        self,
        destination_path: str,
        key: str,
        fetch: ObjectFetcher,
        cancel: Optional[CancelToken] = None,
        directory_modes: Optional[List[Tuple[str, int]]] = None,
    ) -> None:
        """
        Fetch one object into a temporary buffer and extract it.

        The destination must already have been prepared. Directory modes are
        applied once the object is extracted, or appended to
        ``directory_modes`` when given so the caller can apply them after
        every object of the archive is in place (see apply_directory_modes).
        """
        with temporary_buffer(self.temp_dir) as buf:
            try:
                fetch(key, buf)
            except DatasetToolError:
                raise
            except OSError as e:
                raise ArchiveError("failed to download to temporary file", key) from e

            try:
                buf.seek(0)
            except OSError as e:
                raise ArchiveError("failed to seek to the beginning of file", key) from e

            directories = self._extract_buffer(destination_path, buf, key, cancel)

        if directory_modes is None:
            self.apply_directory_modes(directories)
        else:
            directory_modes.extend(directories)

    def _extract_buffer(
        self, destination_path: str, buf: BinaryIO, key: str, cancel: Optional[CancelToken]
    ) -> List[Tuple[str, int]]:
        directories: List[Tuple[str, int]] = []
        count = 0
        try:
            with tarfile.open(fileobj=buf, mode="r:") as tar:
                for member in tar:
                    raise_if_cancelled(cancel)
                    target = to_host_path(destination_path, member.name)
                    if member.isdir():
                        self._extract_directory(target, member)
                        directories.append((target, member.mode))
                    elif member.isreg():
                        self._extract_file(tar, member, target)
                    elif member.issym():
                        self._extract_symlink(destination_path, member, target)
                    else:
                        logging.warning("Skipping unsupported entry %s in %s", member.name, key)
                        continue
                    count += 1
        except tarfile.TarError as e:
            raise ArchiveError("failed to read next header", key) from e

        logging.debug("Extracted %d entries from %s", count, key)
        return directories

    @staticmethod
    def apply_directory_modes(directory_modes: List[Tuple[str, int]]) -> None:
        """
        Set the archived modes of extracted directories.

        Modes are applied after extraction so read-only directories can still
        be filled. Deeper directories go first.
        """
        for target, mode in sorted(directory_modes, key=lambda item: item[0].count(os.sep), reverse=True):
            try:
                os.chmod(target, mode)
            except OSError as e:
                raise ArchiveError("failed to set directory permissions", target) from e

    @staticmethod
    def _extract_directory(target: str, member: tarfile.TarInfo) -> None:
        try:
            os.makedirs(target, exist_ok=True)
        except OSError as e:
            raise ArchiveError("failed to create directory for entry found in tar file", target) from e

    @staticmethod
    def _extract_file(tar: tarfile.TarFile, member: tarfile.TarInfo, target: str) -> None:
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0), 0o600)
            with os.fdopen(fd, "wb") as out:
                source = tar.extractfile(member)
                if source is not None:
                    shutil.copyfileobj(source, out)
            os.chmod(target, member.mode)
        except OSError as e:
            raise ArchiveError("failed to extract file", target) from e

    def _extract_symlink(self, destination_path: str, member: tarfile.TarInfo, target: str) -> None:
        if self.symlinks == "reject":
            raise UnsupportedEntryError("symbolic links are not allowed in datasets", member.name)
        if self.symlinks == "skip":
            logging.debug("Skipping symbolic link %s", member.name)
            return

        link = os.path.join(*member.linkname.split(ARCHIVE_PATH_SEPARATOR)) if member.linkname else ""
        root = os.path.realpath(destination_path)
        resolved = os.path.realpath(os.path.join(os.path.dirname(target), link))
        absolute = member.linkname.startswith(ARCHIVE_PATH_SEPARATOR) or os.path.isabs(link)
        if not link or absolute or os.path.commonpath([root, resolved]) != root:
            raise ArchiveError(f"symbolic link points outside of the dataset ({member.linkname})", member.name)

        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            os.symlink(link, target)
        except OSError as e:
            raise ArchiveError("failed to create symbolic link", target) from e


class TarArchiver(BaseTarArchiver):
    """Archive a directory into a single tar object."""

    archiver_type = "tar"

    def object_keys(self) -> List[str]:
        return [f"{self.key_prefix}{TAR_ARCHIVER_KEY}"]

    def key_for(self, name: str) -> str:
        return f"{self.key_prefix}{TAR_ARCHIVER_KEY}"


class ShardedTarArchiver(BaseTarArchiver):
    """
    Archive a directory into a fixed number of tar objects.

    An entry goes to shard ``crc32(name) % shards``. The shard count is part
    of the configuration, so the key set never depends on the tree and every
    shard is written even when it ends up empty.
    """

    archiver_type = "sharded-tar"

    def __init__(
        self,
        key_prefix: str = "",
        shards: int = DEFAULT_SHARD_COUNT,
        symlinks: str = "preserve",
        temp_dir: Optional[str] = None,
    ) -> None:
        super().__init__(key_prefix=key_prefix, symlinks=symlinks, temp_dir=temp_dir)
        if shards < 1:
            raise ValueError(f"Shard count must be positive, got {shards}")
        self.shards = shards
        self._keys = [f"{self.key_prefix}{SHARDED_TAR_ARCHIVER_KEY.format(index=i)}" for i in range(shards)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key_prefix={self.key_prefix!r}, shards={self.shards}, symlinks={self.symlinks!r})"

    def object_keys(self) -> List[str]:
        return list(self._keys)

    def key_for(self, name: str) -> str:
        return self._keys[zlib.crc32(os.fsencode(name)) % self.shards]


__all__ = ["BaseTarArchiver", "TarArchiver", "ShardedTarArchiver", "temporary_buffer"]
