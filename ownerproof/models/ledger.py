"""Run Ledger entry model (append-only, hash-chained per run).

One entry per state transition of a pipeline run. The ledger never stores
tokens or authorization codes, only hashes of stage outputs.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class LedgerEntry(BaseModel):
    """A single entry in the append-only Run Ledger."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str
    state_transition: str  # "from_state->to_state", e.g. "start->exchanged"
    stage: str = ""  # stage that failed, for "->failed" transitions
    reason: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    output_hash: str = ""  # SHA-256 of the canonical stage output
    artifact_references: list[str] = []  # content addresses / URIs
    pipeline_version: str = "0.1.0"
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed by the ledger, seals this entry
