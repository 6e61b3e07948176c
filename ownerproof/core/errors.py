"""Pipeline error taxonomy.

Every stage raises exactly one of these kinds. The orchestrator records the
failure and re-raises unchanged; the HTTP layer maps ``http_status`` to the
response. Anything that is not a ``PipelineError`` is unclassified (500).
"""

from __future__ import annotations

from typing import ClassVar

from ownerproof.models.stages import StageName


class PipelineError(RuntimeError):
    """Base class for classified pipeline failures."""

    stage: ClassVar[StageName]
    http_status: ClassVar[int] = 400
    default_message: ClassVar[str] = "Pipeline failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class GrantError(PipelineError):
    """Authorization code empty, malformed, or rejected by the provider."""

    stage = StageName.TOKEN_EXCHANGE
    default_message = "No authorization code provided."


class TokenError(PipelineError):
    """Token endpoint answered but gave no usable access token."""

    stage = StageName.TOKEN_EXCHANGE
    default_message = "Failed to obtain access token."


class ResourceFetchError(PipelineError):
    """Resource fetch failed after the single permitted refresh retry."""

    stage = StageName.RESOURCE_FETCH
    default_message = "Failed to fetch YouTube channel."


class NoResourceError(PipelineError):
    """Fetch succeeded but returned zero results."""

    stage = StageName.RESOURCE_FETCH
    default_message = "No YouTube channel found."


class ProofGenerationError(PipelineError):
    """Proof engine returned no proof."""

    stage = StageName.PROOF_GENERATION
    default_message = "Failed to generate proof."


class ProofVerificationError(PipelineError):
    """Proof signature invalid or proof structurally unusable."""

    stage = StageName.PROOF_VERIFICATION
    default_message = "Proof is invalid."


class SchemaError(PipelineError):
    """Verified fields do not satisfy the metadata template."""

    stage = StageName.METADATA_BUILD
    default_message = "Verified claim does not match the metadata template."


class PublishError(PipelineError):
    """Storage provider call failed."""

    stage = StageName.PUBLISH
    http_status = 500
    default_message = "Failed to publish metadata."


class MissingConfigurationError(RuntimeError):
    """Raised at startup when required configuration is absent."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing environment variables: {', '.join(missing)}"
        )
