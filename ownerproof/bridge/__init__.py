"""Bridges to external collaborators: proof engine and proof verifier."""

from ownerproof.bridge.proof_engine import HttpProofEngine, ProofEngine
from ownerproof.bridge.proof_verifier import AttestorProofVerifier, ProofVerifier

__all__ = [
    "ProofEngine",
    "HttpProofEngine",
    "ProofVerifier",
    "AttestorProofVerifier",
]
