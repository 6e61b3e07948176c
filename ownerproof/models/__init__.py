"""ownerproof data models — all Pydantic v2, all frozen (immutable)."""

from ownerproof.models.ledger import LedgerEntry
from ownerproof.models.metadata import (
    MetadataAttribute,
    NFTMetadata,
    PipelineResult,
    PublishedArtifact,
)
from ownerproof.models.proof import (
    FieldPattern,
    Proof,
    ProofRequestSpec,
    VerifiedClaim,
)
from ownerproof.models.resource import FetchResult, ResourceSnapshot
from ownerproof.models.stages import (
    PIPELINE_ORDER,
    STAGE_FOR_STATE,
    VALID_TRANSITIONS,
    PipelineState,
    StageName,
    StageTransition,
)
from ownerproof.models.tokens import AuthorizationGrant, TokenSet

__all__ = [
    # tokens
    "AuthorizationGrant",
    "TokenSet",
    # resource
    "ResourceSnapshot",
    "FetchResult",
    # proof
    "FieldPattern",
    "ProofRequestSpec",
    "Proof",
    "VerifiedClaim",
    # metadata
    "MetadataAttribute",
    "NFTMetadata",
    "PublishedArtifact",
    "PipelineResult",
    # stages
    "PipelineState",
    "StageName",
    "StageTransition",
    "VALID_TRANSITIONS",
    "PIPELINE_ORDER",
    "STAGE_FOR_STATE",
    # ledger
    "LedgerEntry",
]
