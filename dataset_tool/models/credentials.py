"""Credential models."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import ConfigDict, Field

from .base import ApiBaseModel, DatasetToolBaseModel


class CredentialValue(DatasetToolBaseModel):
    """
    Secret material produced by a credential provider.

    Attributes:
        token: Bearer token
        expires_at: Instant the token stops being valid, None if it never expires
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    token: str = Field(repr=False)
    expires_at: Optional[datetime] = None

    def is_expired(self, buffer: float = 0, now: Optional[datetime] = None) -> bool:
        """
        Check whether the token is expired, or will be within ``buffer`` seconds.

        Naive datetimes are interpreted as UTC.
        """
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        current = now or datetime.now(timezone.utc)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return expires_at <= current + timedelta(seconds=buffer)


class OAuthTokenResponse(ApiBaseModel):
    """Response from an OAuth2 token endpoint."""

    access_token: str
    expires_in: int
    token_type: Optional[str] = None


__all__ = ["CredentialValue", "OAuthTokenResponse"]
