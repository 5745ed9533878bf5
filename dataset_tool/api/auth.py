"""
Bearer token authentication for httpx clients.

ProviderAuth plugs any credential provider (usually a ChainProvider) into
httpx, fetching a credential only when the provider reports it expired and
retrying once with a fresh credential on a 401.
"""

import logging
import threading
from typing import Generator, Optional

import httpx

from ..models.credentials import CredentialValue
from ..protocols.credentials_protocol import CredentialProvider
from ..utils.constants import HTTP_STATUS_UNAUTHORIZED


class ProviderAuth(httpx.Auth):
    """
    httpx authentication flow backed by a credential provider.

    This handles token retrieval, the Authorization header and 401 retry.
    """

    def __init__(self, provider: CredentialProvider) -> None:
        """
        Initialize the auth flow.

        Args:
            provider: Credential provider, typically a ChainProvider
        """
        self._provider = provider
        self._value: Optional[CredentialValue] = None
        self._lock = threading.Lock()

    def _credential(self, force: bool = False) -> CredentialValue:
        with self._lock:
            if force or self._value is None or self._provider.is_expired():
                if self._value is not None:
                    logging.debug("Refreshing credentials (forced: %s)", force)
                self._value = self._provider.retrieve()
            return self._value

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        """
        Execute the authentication flow for a request.

        Raises:
            CredentialChainError: If no provider can produce a credential
        """
        request.headers["Authorization"] = f"Bearer {self._credential().token}"

        response = yield request

        if response.status_code == HTTP_STATUS_UNAUTHORIZED:
            logging.debug("Received 401, attempting credential refresh")
            request.headers["Authorization"] = f"Bearer {self._credential(force=True).token}"
            yield request

    @property
    def provider(self) -> CredentialProvider:
        return self._provider

    @property
    def credential(self) -> Optional[CredentialValue]:
        """Last credential used (for debugging/inspection)."""
        return self._value


__all__ = ["ProviderAuth"]
