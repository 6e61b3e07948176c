"""Protected-resource snapshot model."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from ownerproof.models.tokens import TokenSet


class ResourceSnapshot(BaseModel):
    """The literal state of the linked channel at fetch time.

    Immutable once captured. Statistics only carry counts the provider
    actually reported (a hidden subscriber count is simply absent).
    """

    model_config = ConfigDict(frozen=True)

    identifier: str
    title: str
    description: str = ""
    published_at: str = ""
    statistics: dict[str, int] = {}
    image_url: str = ""
    fetched_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class FetchResult(BaseModel):
    """Snapshot plus the token set that was live when it was fetched.

    ``tokens`` differs from the input token set only when the fetcher had
    to refresh the access token.
    """

    model_config = ConfigDict(frozen=True)

    snapshot: ResourceSnapshot
    tokens: TokenSet
    refreshed: bool = False
