"""
Tests for credential providers.
"""

import json
import os
import stat
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from dataset_tool.credentials import (
    ClientCredentialsProvider,
    EnvTokenProvider,
    StaticTokenProvider,
    TokenFileProvider,
)
from dataset_tool.exceptions import CredentialError
from dataset_tool.models.credentials import CredentialValue

TOKEN_URL = "https://sso.example.com/token"


def write_token_file(path, token, expires_at):
    path.write_text(json.dumps({"token": token, "expires_at": expires_at.isoformat() if expires_at else None}))
    return str(path)


class TestStaticTokenProvider:
    """Test StaticTokenProvider."""

    def test_retrieve(self):
        """Test the configured token is returned."""
        provider = StaticTokenProvider("abc")
        assert provider.retrieve().token == "abc"
        assert provider.is_expired() is False

    def test_missing(self):
        """Test an empty token is a provider failure."""
        provider = StaticTokenProvider(None)
        with pytest.raises(CredentialError):
            provider.retrieve()
        assert provider.is_expired() is True

    def test_expired(self):
        """Test a token past its expiry is rejected."""
        provider = StaticTokenProvider("abc", expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
        with pytest.raises(CredentialError, match="expired"):
            provider.retrieve()

    def test_repr_hides_token(self):
        """Test the token does not appear in the representation."""
        assert "abc" not in repr(StaticTokenProvider("abc"))


class TestEnvTokenProvider:
    """Test EnvTokenProvider."""

    def test_retrieve(self, monkeypatch):
        """Test the token is read from the environment."""
        monkeypatch.setenv("MY_TOKEN", " secret \n")
        provider = EnvTokenProvider("MY_TOKEN")
        assert provider.is_expired() is True
        assert provider.retrieve().token == "secret"
        assert provider.is_expired() is False

    def test_unset(self, monkeypatch):
        """Test an unset variable is a provider failure."""
        monkeypatch.delenv("MY_TOKEN", raising=False)
        with pytest.raises(CredentialError, match="MY_TOKEN"):
            EnvTokenProvider("MY_TOKEN").retrieve()


class TestTokenFileProvider:
    """Test TokenFileProvider."""

    def test_retrieve_valid(self, tmp_path):
        """Test a cached token that is still valid is returned."""
        expires = datetime.now(timezone.utc) + timedelta(hours=1)
        provider = TokenFileProvider(write_token_file(tmp_path / "t.json", "cached", expires))

        assert provider.retrieve().token == "cached"
        assert provider.is_expired() is False

    def test_retrieve_expired(self, tmp_path):
        """Test tokens within the refresh buffer count as expired."""
        expires = datetime.now(timezone.utc) + timedelta(seconds=10)
        provider = TokenFileProvider(write_token_file(tmp_path / "t.json", "cached", expires))

        with pytest.raises(CredentialError, match="expired"):
            provider.retrieve()
        assert provider.is_expired() is True

    def test_missing_file(self, tmp_path):
        """Test a missing file is a provider failure."""
        with pytest.raises(CredentialError, match="not found"):
            TokenFileProvider(str(tmp_path / "missing.json")).retrieve()

    @pytest.mark.parametrize("content", ["not json", '{"expires_at": null}'])
    def test_invalid_file(self, tmp_path, content):
        """Test malformed files are provider failures."""
        path = tmp_path / "t.json"
        path.write_text(content)
        with pytest.raises(CredentialError):
            TokenFileProvider(str(path)).retrieve()

    def test_store(self, tmp_path):
        """Test stored tokens are readable and private to the owner."""
        path = tmp_path / "nested" / "t.json"
        provider = TokenFileProvider(str(path))
        expires = datetime.now(timezone.utc) + timedelta(hours=1)

        provider.store(CredentialValue(token="fresh", expires_at=expires))

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert TokenFileProvider(str(path)).retrieve().token == "fresh"
        assert [p.name for p in path.parent.iterdir()] == ["t.json"]


class TestClientCredentialsProvider:
    """Test ClientCredentialsProvider."""

    def test_retrieve(self, httpx_mock):
        """Test a token is fetched with the client credentials grant."""
        route = httpx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "oauth-token", "expires_in": 3600})
        )
        provider = ClientCredentialsProvider("id", "secret", TOKEN_URL)

        value = provider.retrieve()

        assert value.token == "oauth-token"
        assert provider.is_expired() is False
        assert provider.expires_at is not None
        request = route.calls.last.request
        assert b"grant_type=client_credentials" in request.content
        assert request.headers["Authorization"].startswith("Basic ")

    def test_http_error(self, httpx_mock):
        """Test token endpoint errors are provider failures."""
        httpx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(401))
        provider = ClientCredentialsProvider("id", "secret", TOKEN_URL)

        with pytest.raises(CredentialError, match="failed to retrieve OAuth2 token"):
            provider.retrieve()
        assert provider.is_expired() is True

    def test_invalid_response(self, httpx_mock):
        """Test responses without an access token are rejected."""
        httpx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"token_type": "Bearer"}))
        with pytest.raises(CredentialError, match="invalid token response"):
            ClientCredentialsProvider("id", "secret", TOKEN_URL).retrieve()

    def test_caches_to_token_file(self, httpx_mock, tmp_path):
        """Test fresh tokens are written to the token file."""
        httpx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "oauth-token", "expires_in": 3600})
        )
        cache = TokenFileProvider(str(tmp_path / "t.json"))

        ClientCredentialsProvider("id", "secret", TOKEN_URL, cache=cache).retrieve()

        assert TokenFileProvider(str(tmp_path / "t.json")).retrieve().token == "oauth-token"

    def test_cache_failure_is_not_fatal(self, httpx_mock, tmp_path, mocker):
        """Test a token file that cannot be written only logs a warning."""
        httpx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "oauth-token", "expires_in": 3600})
        )
        cache = TokenFileProvider(str(tmp_path / "t.json"))
        mocker.patch.object(cache, "store", side_effect=CredentialError("read-only"))

        assert ClientCredentialsProvider("id", "secret", TOKEN_URL, cache=cache).retrieve().token == "oauth-token"
