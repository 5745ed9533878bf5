"""
Credential providers.

Each provider produces a bearer token from one source and remembers the last
credential it produced so is_expired() can answer without another lookup.
They are meant to be combined in a ChainProvider, cheapest source first.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from pydantic import ValidationError

from ..exceptions import CredentialError
from ..models.credentials import CredentialValue, OAuthTokenResponse
from ..utils.constants import DEFAULT_TOKEN_ENV, TOKEN_REFRESH_BUFFER


class StaticTokenProvider:
    """Provide a token given in configuration."""

    def __init__(self, token: Optional[str], expires_at: Optional[datetime] = None) -> None:
        self._value = CredentialValue(token=token, expires_at=expires_at) if token else None

    def retrieve(self) -> CredentialValue:
        if self._value is None:
            raise CredentialError("no static token configured")
        if self._value.is_expired():
            raise CredentialError("static token is expired")
        return self._value

    def is_expired(self) -> bool:
        return self._value is None or self._value.is_expired()

    def __repr__(self) -> str:
        return "StaticTokenProvider()"


class EnvTokenProvider:
    """Provide a token from an environment variable."""

    def __init__(self, variable: str = DEFAULT_TOKEN_ENV) -> None:
        self.variable = variable
        self._value: Optional[CredentialValue] = None

    def retrieve(self) -> CredentialValue:
        token = os.environ.get(self.variable, "").strip()
        if not token:
            self._value = None
            raise CredentialError(f"environment variable {self.variable} is not set")
        self._value = CredentialValue(token=token)
        return self._value

    def is_expired(self) -> bool:
        # environment tokens carry no expiry; only a missing token counts as expired
        return self._value is None

    def __repr__(self) -> str:
        return f"EnvTokenProvider({self.variable!r})"


class TokenFileProvider:
    """
    Provide a token cached in a JSON file.

    The file holds ``{"token": "...", "expires_at": "<ISO 8601>"}`` and is
    written by store(), usually after a slower provider obtained a fresh token.
    """

    def __init__(self, path: str) -> None:
        self.path = os.path.expanduser(path)
        self._value: Optional[CredentialValue] = None

    def retrieve(self) -> CredentialValue:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise CredentialError(f"token file not found: {self.path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialError(f"failed to read token file {self.path}: {e}") from e

        try:
            value = CredentialValue.model_validate(data)
        except ValidationError as e:
            raise CredentialError(f"invalid token file {self.path}: {e}") from e

        if value.is_expired(buffer=TOKEN_REFRESH_BUFFER):
            self._value = None
            raise CredentialError(f"cached token in {self.path} is expired")

        self._value = value
        return value

    def is_expired(self) -> bool:
        return self._value is None or self._value.is_expired(buffer=TOKEN_REFRESH_BUFFER)

    def store(self, value: CredentialValue) -> None:
        """
        Persist ``value`` to the token file, readable by the owner only.

        Raises:
            CredentialError: If the file cannot be written
        """
        directory = os.path.dirname(self.path) or "."
        payload = {
            "token": value.token,
            "expires_at": value.expires_at.isoformat() if value.expires_at else None,
        }
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".token_", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
                os.chmod(tmp_path, 0o600)
                os.replace(tmp_path, self.path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise CredentialError(f"failed to write token file {self.path}: {e}") from e

        self._value = value
        logging.debug("Stored token in %s", self.path)

    def __repr__(self) -> str:
        return f"TokenFileProvider({self.path!r})"


class ClientCredentialsProvider:
    """
    OAuth2 Client Credentials Grant.

    Fetches a new access token from the token endpoint whenever retrieve() is
    called and optionally stores it in a TokenFileProvider so later runs can
    pick it up without a round trip.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str,
        cache: Optional[TokenFileProvider] = None,
        timeout: float = 30,
    ) -> None:
        """
        Initialize the provider.

        Args:
            client_id: OAuth2 client ID
            client_secret: OAuth2 client secret
            token_url: URL for the token endpoint
            cache: Optional token file that receives fresh tokens
            timeout: Token request timeout in seconds
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._cache = cache
        self._timeout = timeout
        self._lock = threading.Lock()
        self._value: Optional[CredentialValue] = None

    def retrieve(self) -> CredentialValue:
        with self._lock:
            try:
                response = httpx.post(
                    self._token_url,
                    data={"grant_type": "client_credentials"},
                    auth=(self._client_id, self._client_secret),
                    timeout=self._timeout,
                )
                response.raise_for_status()
                token = OAuthTokenResponse(**response.json())
            except httpx.HTTPError as e:
                logging.error("Failed to retrieve OAuth2 token: %s", e)
                raise CredentialError(f"failed to retrieve OAuth2 token from {self._token_url}: {e}") from e
            except (ValueError, ValidationError) as e:
                raise CredentialError(f"invalid token response from {self._token_url}: {e}") from e

            self._value = CredentialValue(
                token=token.access_token,
                expires_at=datetime.now(timezone.utc) + timedelta(seconds=token.expires_in),
            )
            value = self._value

        if self._cache is not None:
            try:
                self._cache.store(value)
            except CredentialError as e:
                logging.warning("Could not cache token: %s", e)
        return value

    def is_expired(self) -> bool:
        value = self._value
        return value is None or value.is_expired(buffer=TOKEN_REFRESH_BUFFER)

    @property
    def expires_at(self) -> Optional[datetime]:
        """Expiry of the current token (for debugging/inspection)."""
        return self._value.expires_at if self._value else None

    def __repr__(self) -> str:
        return f"ClientCredentialsProvider(token_url={self._token_url!r})"


__all__ = [
    "StaticTokenProvider",
    "EnvTokenProvider",
    "TokenFileProvider",
    "ClientCredentialsProvider",
]
