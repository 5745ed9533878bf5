"""
Credential provider protocol.

Providers are polymorphic over retrieve() and is_expired(); the credential
chain and the HTTP auth adapter never look further than this interface.
"""

from typing import Protocol, runtime_checkable

from ..models.credentials import CredentialValue


@runtime_checkable
class CredentialProvider(Protocol):
    """Protocol for anything that can produce a bearer credential."""

    def retrieve(self) -> CredentialValue:
        """
        Produce a credential.

        Raises:
            CredentialError: If no credential can be produced
        """
        ...

    def is_expired(self) -> bool:
        """Whether the credential last retrieved by this provider is expired."""
        ...


__all__ = ["CredentialProvider"]
