"""OAuth grant and token models.

A TokenSet is scoped to a single pipeline run (or to a single identity once
the run completes). It is never held in a process-wide slot; see
``ownerproof.core.token_store``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field


class AuthorizationGrant(BaseModel):
    """Single-use authorization code issued by the identity provider."""

    model_config = ConfigDict(frozen=True)

    code: str
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def redacted(self) -> str:
        """Return a log-safe prefix of the code."""
        return f"{self.code[:6]}..." if self.code else "<empty>"


class TokenSet(BaseModel):
    """Access/refresh token pair returned by the token endpoint."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None  # seconds, as reported by the provider
    scope: str = ""
    issued_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def expires_at(self) -> datetime | None:
        if self.expires_in is None:
            return None
        return self.issued_at + timedelta(seconds=self.expires_in)

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the access token is past its reported lifetime."""
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= expires_at

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}
