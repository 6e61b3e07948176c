"""Pipeline run state machine models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PipelineState(str, Enum):
    """Strict, forward-only states of a single pipeline run."""

    START = "start"
    EXCHANGED = "exchanged"
    FETCHED = "fetched"
    PROOF_GENERATED = "proof_generated"
    VERIFIED = "verified"
    METADATA_BUILT = "metadata_built"
    PUBLISHED = "published"
    DONE = "done"
    FAILED = "failed"


# The happy path, in order. Each state is reachable only from its predecessor.
PIPELINE_ORDER: list[PipelineState] = [
    PipelineState.START,
    PipelineState.EXCHANGED,
    PipelineState.FETCHED,
    PipelineState.PROOF_GENERATED,
    PipelineState.VERIFIED,
    PipelineState.METADATA_BUILT,
    PipelineState.PUBLISHED,
    PipelineState.DONE,
]

# Valid state transitions, enforced by RunStateMachine.
# Terminal states (DONE, FAILED) have no outgoing transitions.
VALID_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    state: {nxt, PipelineState.FAILED}
    for state, nxt in zip(PIPELINE_ORDER, PIPELINE_ORDER[1:])
}
VALID_TRANSITIONS[PipelineState.DONE] = set()
VALID_TRANSITIONS[PipelineState.FAILED] = set()


class StageName(str, Enum):
    """The stage that is running while a run sits in a given state."""

    TOKEN_EXCHANGE = "token_exchange"
    RESOURCE_FETCH = "resource_fetch"
    PROOF_GENERATION = "proof_generation"
    PROOF_VERIFICATION = "proof_verification"
    METADATA_BUILD = "metadata_build"
    PUBLISH = "publish"
    COMPLETE = "complete"


# Which stage moves a run out of each non-terminal state.
STAGE_FOR_STATE: dict[PipelineState, StageName] = {
    PipelineState.START: StageName.TOKEN_EXCHANGE,
    PipelineState.EXCHANGED: StageName.RESOURCE_FETCH,
    PipelineState.FETCHED: StageName.PROOF_GENERATION,
    PipelineState.PROOF_GENERATED: StageName.PROOF_VERIFICATION,
    PipelineState.VERIFIED: StageName.METADATA_BUILD,
    PipelineState.METADATA_BUILT: StageName.PUBLISH,
    PipelineState.PUBLISHED: StageName.COMPLETE,
}


class StageTransition(BaseModel):
    """Records a single state transition of a run."""

    model_config = ConfigDict(frozen=True)

    from_state: PipelineState
    to_state: PipelineState
    stage: StageName | None = None  # populated when entering FAILED
    reason: str | None = None
