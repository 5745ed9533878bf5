"""
Data client protocol consumed by the download orchestrator.

TransferHandle implements it; anything that can enumerate, prepare and
fetch a dataset's objects can be downloaded through the orchestrator.
"""

from typing import List, Optional, Protocol, runtime_checkable

from ..utils.cancellation import CancelToken
from .storage_protocol import ChunkCallback


@runtime_checkable
class DataClientProtocol(Protocol):
    """Per-object pull operations on one dataset."""

    def keys(self) -> List[str]:
        """Object keys that make up the dataset."""
        ...

    def prepare_destination(self, local_dir: str) -> None:
        """Check the destination precondition, creating it if missing."""
        ...

    def pull_object(
        self,
        local_dir: str,
        key: str,
        on_chunk: Optional[ChunkCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """
        Fetch one object and extract it into a prepared destination.

        Returns:
            Number of bytes fetched
        """
        ...

    def finish_destination(self, local_dir: str) -> None:
        """Finish a destination once every object has been pulled into it."""
        ...


__all__ = ["DataClientProtocol"]
