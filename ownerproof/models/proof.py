"""Proof request, opaque proof, and verified claim models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class FieldPattern(BaseModel):
    """A named extraction rule the proof engine matches against the response.

    ``rule`` is written in the proof engine's regex dialect and must contain
    a named capture group called ``name``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    rule: str
    kind: str = "regex"

    def declares_group(self) -> bool:
        return f"(?<{self.name}>" in self.rule

    def to_wire(self) -> dict[str, str]:
        return {"type": self.kind, "value": self.rule}


class ProofRequestSpec(BaseModel):
    """Everything the proof engine needs to re-perform the fetch itself."""

    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "GET"
    headers: dict[str, str] = {}
    patterns: list[FieldPattern] = []

    @property
    def field_names(self) -> list[str]:
        return [p.name for p in self.patterns]


class Proof(BaseModel):
    """Opaque signed blob returned by the proof engine.

    Carries no guaranteed structure until a ProofVerifier has checked it.
    """

    model_config = ConfigDict(frozen=True)

    payload: dict[str, Any]


class VerifiedClaim(BaseModel):
    """Signature-checked, structurally parsed proof result.

    ``fields`` maps each extracted parameter name to the value the proof
    engine observed in the live response.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str
    fields: dict[str, str]
    provider: str = "http"
    owner: str = ""
    timestamp_s: int = 0
    epoch: int = 0

    def missing(self, names: list[str]) -> list[str]:
        """Return the subset of *names* absent (or empty) in ``fields``."""
        return [n for n in names if not self.fields.get(n)]
