"""
Credential providers and the credential chain.

Modules:
    - providers: static, environment, token file and OAuth2 client credentials providers
    - chain: ChainProvider with first-success affinity
"""

from typing import List

from ..models.config import AuthConfig
from ..protocols.credentials_protocol import CredentialProvider
from .chain import ChainProvider
from .providers import ClientCredentialsProvider, EnvTokenProvider, StaticTokenProvider, TokenFileProvider


def build_credential_chain(config: AuthConfig) -> ChainProvider:
    """
    Assemble a ChainProvider from the [auth] configuration.

    Providers are ordered from cheapest to most expensive: static token,
    environment variable, token file, OAuth2 client credentials. The OAuth2
    provider writes fresh tokens to the token file when both are configured.

    Args:
        config: Authentication configuration

    Returns:
        ChainProvider over every configured provider
    """
    providers: List[CredentialProvider] = []
    if config.token:
        providers.append(StaticTokenProvider(config.token))
    if config.token_env:
        providers.append(EnvTokenProvider(config.token_env))

    token_file = TokenFileProvider(config.token_file) if config.token_file else None
    if token_file is not None:
        providers.append(token_file)

    if config.client_id and config.client_secret and config.token_url:
        providers.append(
            ClientCredentialsProvider(
                client_id=config.client_id,
                client_secret=config.client_secret,
                token_url=config.token_url,
                cache=token_file,
            )
        )

    return ChainProvider(providers)


__all__ = [
    "build_credential_chain",
    "ChainProvider",
    "ClientCredentialsProvider",
    "EnvTokenProvider",
    "StaticTokenProvider",
    "TokenFileProvider",
]
