"""
Credential chain.

ChainProvider tries its providers in order and sticks with the first one that
works: is_expired() only consults that provider, so slower providers further
down the chain are not touched again until the current credential expires or
a fresh retrieve() is requested.
"""

import logging
import threading
from typing import List, Optional, Sequence

from ..exceptions import CredentialChainError
from ..models.credentials import CredentialValue
from ..protocols.credentials_protocol import CredentialProvider


class ChainProvider:
    """
    Provide credentials from the first provider that succeeds.

    The current provider is shared state, guarded by a lock so one chain can
    serve several threads (for example a download worker pool sharing one
    HTTP client).
    """

    def __init__(self, providers: Sequence[CredentialProvider]) -> None:
        """
        Initialize the chain.

        Args:
            providers: Providers in priority order
        """
        self.providers: List[CredentialProvider] = list(providers)
        self._current: Optional[CredentialProvider] = None
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[CredentialProvider]:
        """Provider that produced the last successful credential, if any."""
        with self._lock:
            return self._current

    def retrieve(self) -> CredentialValue:
        """
        Return the credential of the first provider that succeeds.

        Raises:
            CredentialChainError: If every provider fails; holds each failure
        """
        with self._lock:
            errors: List[Exception] = []
            for provider in self.providers:
                try:
                    value = provider.retrieve()
                except Exception as e:  # pylint: disable=broad-exception-caught
                    logging.debug("Credential provider %r failed: %s", provider, e)
                    errors.append(e)
                    continue
                if self._current is not provider:
                    logging.debug("Using credentials from %r", provider)
                self._current = provider
                return value

            self._current = None
            raise CredentialChainError(errors)

    def is_expired(self) -> bool:
        """
        Expired state of the current provider, True if there is none.
        """
        with self._lock:
            if self._current is None:
                return True
            return self._current.is_expired()

    def __repr__(self) -> str:
        return f"ChainProvider({self.providers!r})"


__all__ = ["ChainProvider"]
