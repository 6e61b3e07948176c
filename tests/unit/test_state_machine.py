"""Tests for RunStateMachine — forward-only transitions, ledger recording."""

from __future__ import annotations

import pytest

from ownerproof.core.run_ledger import RunLedger
from ownerproof.core.state_machine import InvalidTransitionError, RunStateMachine
from ownerproof.models.stages import PIPELINE_ORDER, PipelineState, StageName


class TestRunStateMachine:
    def test_new_run_starts_at_start(self, state_machine: RunStateMachine, run_id: str):
        run = state_machine.start(run_id)
        assert run.state == PipelineState.START
        assert run.current_stage == StageName.TOKEN_EXCHANGE
        assert not run.is_terminal

    def test_happy_path(self, state_machine: RunStateMachine, run_id: str):
        run = state_machine.start(run_id)
        for state in PIPELINE_ORDER[1:]:
            state_machine.advance(run, state)
        assert run.state == PipelineState.DONE
        assert run.is_terminal
        assert len(run.history) == len(PIPELINE_ORDER) - 1

    def test_skipping_a_state_rejected(self, state_machine: RunStateMachine, run_id: str):
        run = state_machine.start(run_id)
        with pytest.raises(InvalidTransitionError):
            state_machine.advance(run, PipelineState.FETCHED)
        assert run.state == PipelineState.START

    def test_backward_transition_rejected(self, state_machine: RunStateMachine, run_id: str):
        run = state_machine.start(run_id)
        state_machine.advance(run, PipelineState.EXCHANGED)
        state_machine.advance(run, PipelineState.FETCHED)
        with pytest.raises(InvalidTransitionError):
            state_machine.advance(run, PipelineState.EXCHANGED)

    def test_advance_cannot_enter_failed(self, state_machine: RunStateMachine, run_id: str):
        run = state_machine.start(run_id)
        with pytest.raises(InvalidTransitionError, match="fail()"):
            state_machine.advance(run, PipelineState.FAILED)

    def test_fail_records_stage(self, state_machine: RunStateMachine, run_id: str):
        run = state_machine.start(run_id)
        state_machine.advance(run, PipelineState.EXCHANGED)
        transition = state_machine.fail(run, StageName.RESOURCE_FETCH, "No YouTube channel found.")

        assert run.state == PipelineState.FAILED
        assert run.failed_stage == StageName.RESOURCE_FETCH
        assert run.failure_reason == "No YouTube channel found."
        assert transition.stage == StageName.RESOURCE_FETCH

    def test_terminal_states_have_no_exit(self, state_machine: RunStateMachine, run_id: str):
        run = state_machine.start(run_id)
        state_machine.fail(run, StageName.TOKEN_EXCHANGE, "No authorization code provided.")
        with pytest.raises(InvalidTransitionError):
            state_machine.fail(run, StageName.TOKEN_EXCHANGE, "again")
        with pytest.raises(InvalidTransitionError):
            state_machine.advance(run, PipelineState.EXCHANGED)

    def test_transitions_recorded_in_ledger(
        self, state_machine: RunStateMachine, ledger: RunLedger, run_id: str
    ):
        run = state_machine.start(run_id)
        state_machine.advance(run, PipelineState.EXCHANGED)
        state_machine.fail(run, StageName.RESOURCE_FETCH, "boom")

        entries = ledger.get_run_entries(run_id)
        assert [e.state_transition for e in entries] == ["start->exchanged", "exchanged->failed"]
        assert entries[1].stage == "resource_fetch"
        assert entries[1].reason == "boom"
        assert ledger.verify_chain(run_id)

    def test_without_ledger(self, run_id: str):
        sm = RunStateMachine()
        run = sm.start(run_id)
        sm.advance(run, PipelineState.EXCHANGED)
        assert run.state == PipelineState.EXCHANGED
