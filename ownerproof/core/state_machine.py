"""Forward-only run state machine.

Enforces:
- Each state is entered only from its predecessor (VALID_TRANSITIONS)
- FAILED is reachable from every non-terminal state and records the stage
- DONE and FAILED are terminal; there is no backward transition
- Every transition is recorded in the Run Ledger when one is configured
"""

from __future__ import annotations

import logging

from ownerproof.core.run_ledger import RunLedger
from ownerproof.models.ledger import LedgerEntry
from ownerproof.models.stages import (
    STAGE_FOR_STATE,
    VALID_TRANSITIONS,
    PipelineState,
    StageName,
    StageTransition,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class PipelineRun:
    """Mutable state of exactly one pipeline run.

    Owned by the coroutine driving the run; never shared between runs.
    """

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self.state = PipelineState.START
        self.failed_stage: StageName | None = None
        self.failure_reason: str | None = None
        self.history: list[StageTransition] = []

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self.state]

    @property
    def current_stage(self) -> StageName | None:
        """The stage that would move the run out of its current state."""
        return STAGE_FOR_STATE.get(self.state)

    def __repr__(self) -> str:
        return f"<PipelineRun run_id={self.run_id!r} state={self.state.value}>"


class RunStateMachine:
    """Validates and records transitions of PipelineRun objects.

    Parameters
    ----------
    ledger:
        Run Ledger to record transitions into. ``None`` disables recording.
    """

    def __init__(self, ledger: RunLedger | None = None) -> None:
        self._ledger = ledger

    def start(self, run_id: str) -> PipelineRun:
        """Create a run in the START state."""
        return PipelineRun(run_id)

    def advance(
        self,
        run: PipelineRun,
        target_state: PipelineState,
        *,
        output_hash: str = "",
        artifact_references: list[str] | None = None,
    ) -> StageTransition:
        """Move *run* forward to *target_state*."""
        if target_state == PipelineState.FAILED:
            raise InvalidTransitionError("Use fail() to enter the failed state")
        return self._transition(
            run,
            target_state,
            output_hash=output_hash,
            artifact_references=artifact_references,
        )

    def fail(self, run: PipelineRun, stage: StageName, reason: str) -> StageTransition:
        """Move *run* to FAILED, recording which stage stopped it."""
        transition = self._transition(
            run, PipelineState.FAILED, stage=stage, reason=reason
        )
        run.failed_stage = stage
        run.failure_reason = reason
        return transition

    def _transition(
        self,
        run: PipelineRun,
        target_state: PipelineState,
        *,
        stage: StageName | None = None,
        reason: str | None = None,
        output_hash: str = "",
        artifact_references: list[str] | None = None,
    ) -> StageTransition:
        current = run.state
        allowed = VALID_TRANSITIONS.get(current, set())
        if target_state not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition run {run.run_id} from {current.value} to "
                f"{target_state.value}. Allowed: {sorted(s.value for s in allowed)}"
            )

        transition = StageTransition(
            from_state=current,
            to_state=target_state,
            stage=stage,
            reason=reason,
        )

        if self._ledger is not None:
            self._ledger.append(
                LedgerEntry(
                    run_id=run.run_id,
                    state_transition=f"{current.value}->{target_state.value}",
                    stage=stage.value if stage else "",
                    reason=reason or "",
                    output_hash=output_hash,
                    artifact_references=artifact_references or [],
                )
            )

        run.state = target_state
        run.history.append(transition)
        logger.debug(
            "Run %s: %s -> %s", run.run_id, current.value, target_state.value
        )
        return transition
