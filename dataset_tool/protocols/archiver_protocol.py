"""
Archiver protocol.

An archiver translates between a directory tree and a set of keyed objects.
Implementations are stateless apart from their configuration, so the same
instance can be used for any number of archive and unarchive calls.
"""

from typing import BinaryIO, Callable, List, Optional, Protocol, Tuple, runtime_checkable

# visit(key) for index, visit(key, reader) for archive
IndexVisitor = Callable[[str], None]
ArchiveVisitor = Callable[[str, BinaryIO], None]

# fetch(key, writer) fills a local buffer with the object stored under key
ObjectFetcher = Callable[[str, BinaryIO], None]


@runtime_checkable
class ArchiverProtocol(Protocol):
    """Protocol defining the archiver contract."""

    def index(self, visit: IndexVisitor) -> None:
        """
        Call ``visit`` once for every object key of an archive of this shape.

        No data is produced and the result never depends on a source tree, so
        the key set can be used to check that a dataset is complete.
        """
        ...

    def archive(self, source_path: str, visit: ArchiveVisitor) -> None:
        """
        Archive ``source_path`` and call ``visit`` once per produced object.

        The reader handed to ``visit`` is seekable and positioned at 0. It is
        only valid for the duration of the call.
        """
        ...

    def unarchive(self, destination_path: str, fetch: ObjectFetcher) -> None:
        """
        Rebuild a tree in ``destination_path`` from the objects ``fetch`` provides.

        The destination must not exist or be empty.
        """
        ...

    def prepare_destination(self, destination_path: str) -> None:
        """Create ``destination_path`` if missing and fail if it is not empty."""
        ...

    def extract_object(
        self,
        destination_path: str,
        key: str,
        fetch: ObjectFetcher,
        directory_modes: Optional[List[Tuple[str, int]]] = None,
    ) -> None:
        """
        Fetch and extract a single object into a prepared destination.

        Objects of one archive map to disjoint parts of the tree, so different
        keys may be extracted concurrently. Directory modes collected in
        ``directory_modes`` are applied with apply_directory_modes() once all
        objects are extracted.
        """
        ...

    def apply_directory_modes(self, directory_modes: List[Tuple[str, int]]) -> None:
        """Set the archived modes of extracted directories."""
        ...


__all__ = ["ArchiverProtocol", "IndexVisitor", "ArchiveVisitor", "ObjectFetcher"]
