"""Deterministic metadata construction from a verified claim and a snapshot.

Pure: no network, no clock, no randomness. The same (claim, snapshot)
always yields byte-identical ``NFTMetadata.to_bytes()``.

Provenance rule: attribute values come only from the VerifiedClaim
(``verified=True``) or the ResourceSnapshot (``verified=False``). Nothing
supplied by the client can reach an attribute.
"""

from __future__ import annotations

from typing import ClassVar, Protocol, runtime_checkable

from ownerproof.core.errors import SchemaError
from ownerproof.models.metadata import MetadataAttribute, NFTMetadata
from ownerproof.models.proof import VerifiedClaim
from ownerproof.models.resource import ResourceSnapshot


@runtime_checkable
class MetadataTemplate(Protocol):
    """Strategy that maps claim + snapshot fields onto a metadata document.

    ``verified_fields`` lists the claim fields the template reads; each
    must be a pattern name in the ProofRequestSpec.
    """

    verified_fields: tuple[str, ...]

    def render(self, claim: VerifiedClaim, snapshot: ResourceSnapshot) -> NFTMetadata:
        ...


class YouTubeOwnershipTemplate:
    """Ownership NFT for a YouTube channel."""

    verified_fields: ClassVar[tuple[str, ...]] = ("channelId", "title")

    # Snapshot statistics emitted as descriptive attributes, in this order.
    statistic_traits: ClassVar[tuple[tuple[str, str], ...]] = (
        ("subscriberCount", "Subscriber Count"),
        ("viewCount", "View Count"),
        ("videoCount", "Video Count"),
    )

    def render(self, claim: VerifiedClaim, snapshot: ResourceSnapshot) -> NFTMetadata:
        if not snapshot.image_url:
            raise SchemaError("Snapshot is missing required field: image_url")

        title = claim.fields["title"]
        attributes = [
            MetadataAttribute(trait_type="Channel Name", value=title, verified=True),
            MetadataAttribute(
                trait_type="Channel Data ID",
                value=claim.fields["channelId"],
                verified=True,
            ),
            MetadataAttribute(
                trait_type="Channel Data Image",
                value=snapshot.image_url,
                verified=False,
            ),
            MetadataAttribute(trait_type="Proof", value=claim.identifier, verified=True),
        ]
        for key, trait in self.statistic_traits:
            if key in snapshot.statistics:
                attributes.append(
                    MetadataAttribute(
                        trait_type=trait,
                        value=snapshot.statistics[key],
                        verified=False,
                    )
                )

        return NFTMetadata(
            name="YouTube Ownership NFT",
            description=f"Proof of Owner for YouTube account: {title}",
            image=snapshot.image_url,
            attributes=attributes,
        )


class MetadataBuilder:
    """Validates inputs against a template, then renders it.

    Parameters
    ----------
    template:
        The metadata shape. Defaults to ``YouTubeOwnershipTemplate``.
    """

    def __init__(self, template: MetadataTemplate | None = None) -> None:
        self.template = template or YouTubeOwnershipTemplate()

    @property
    def verified_fields(self) -> tuple[str, ...]:
        return tuple(self.template.verified_fields)

    def build(self, claim: VerifiedClaim, snapshot: ResourceSnapshot) -> NFTMetadata:
        """Return the metadata document, or raise ``SchemaError``."""
        missing = claim.missing(list(self.verified_fields))
        if missing:
            raise SchemaError(
                f"Verified claim is missing required fields: {', '.join(missing)}"
            )
        if not claim.identifier:
            raise SchemaError("Verified claim has no identifier.")
        if not snapshot.identifier or not snapshot.title:
            raise SchemaError("Snapshot is missing required fields: identifier, title")
        return self.template.render(claim, snapshot)
