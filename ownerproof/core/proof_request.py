"""Derive the ProofRequestSpec the proof engine re-performs independently."""

from __future__ import annotations

from urllib.parse import urlencode

from ownerproof.core.resource_fetcher import YOUTUBE_CHANNELS_URL
from ownerproof.models.proof import FieldPattern, ProofRequestSpec
from ownerproof.models.resource import ResourceSnapshot
from ownerproof.models.tokens import TokenSet

# Field names here are the contract with MetadataTemplate.verified_fields.
YOUTUBE_CHANNEL_PATTERNS: tuple[FieldPattern, ...] = (
    FieldPattern(name="channelId", rule=r'"id":\s*"(?<channelId>[^"]+)"'),
    FieldPattern(name="title", rule=r'"title":\s*"(?<title>[^"]+)"'),
)


class ProofRequestBuilder:
    """Builds the request the proof engine replays against the provider.

    The request carries the live bearer token so the engine can reproduce the
    authenticated fetch in its own execution context. It asks for the token
    holder's own channel (``mine=true``) rather than a channel by id, so the
    attested channelId is one the grant actually owns.
    """

    def __init__(
        self,
        patterns: tuple[FieldPattern, ...] = YOUTUBE_CHANNEL_PATTERNS,
        *,
        channels_url: str = YOUTUBE_CHANNELS_URL,
    ) -> None:
        for pattern in patterns:
            if not pattern.declares_group():
                raise ValueError(
                    f"Pattern {pattern.name!r} has no named group (?<{pattern.name}>...)"
                )
        self._patterns = patterns
        self._channels_url = channels_url

    @property
    def field_names(self) -> list[str]:
        return [p.name for p in self._patterns]

    def build(self, snapshot: ResourceSnapshot, tokens: TokenSet) -> ProofRequestSpec:
        query = urlencode({"part": "snippet", "mine": "true"})
        return ProofRequestSpec(
            url=f"{self._channels_url}?{query}",
            method="GET",
            headers=tokens.authorization_header(),
            patterns=list(self._patterns),
        )
