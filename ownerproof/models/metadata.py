"""NFT metadata and published artifact models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ownerproof.core.hasher import canonical_json_bytes


class MetadataAttribute(BaseModel):
    """A single ``(trait_type, value)`` pair.

    ``verified`` is True only for values taken from a VerifiedClaim.
    Values copied from the resource snapshot are descriptive.
    """

    model_config = ConfigDict(frozen=True)

    trait_type: str
    value: str | int
    verified: bool


class NFTMetadata(BaseModel):
    """Immutable metadata document referencing a verified claim."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    image: str
    attributes: list[MetadataAttribute]

    def to_bytes(self) -> bytes:
        """Canonical JSON bytes; identical documents give identical bytes."""
        return canonical_json_bytes(self.model_dump(mode="json"))


class PublishedArtifact(BaseModel):
    """A retrieval URI plus the exact bytes that produced it."""

    model_config = ConfigDict(frozen=True)

    uri: str
    content_address: str  # "sha256:<hex>"
    data: bytes


class PipelineResult(BaseModel):
    """Outcome of a completed pipeline run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    channel_id: str
    token_uri: str
    metadata: NFTMetadata
    artifact: PublishedArtifact

    def response_body(self) -> dict[str, str]:
        return {"channelId": self.channel_id, "tokenURI": self.token_uri}
