"""Proof verifier bridge — attestor signature check and claim transform.

Bridge boundary
---------------
A proof carries ``claimData`` and one or more attestor ``signatures``::

    {
      "claimData": {
        "provider": "http",
        "parameters": "<json: url, method, responseMatches>",
        "context": "<json: {\"extractedParameters\": {...}}>",
        "owner": "...", "timestampS": 1700000000, "epoch": 1,
        "identifier": "<sha256 hex of provider\\nparameters\\ncontext>"
      },
      "signatures": ["<ed25519 signature hex>"]
    }

Each signature covers ``identifier\\nowner\\ntimestampS\\nepoch``. A proof is
valid when the identifier matches its claim content and at least one
signature verifies against a trusted attestor public key (PyNaCl).

``transform`` is the only place a VerifiedClaim is built. It must not be
called for a proof that failed ``verify``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import nacl.signing
from nacl.exceptions import BadSignatureError

from ownerproof.core.errors import ProofVerificationError
from ownerproof.core.hasher import sha256_hex
from ownerproof.models.proof import Proof, VerifiedClaim

logger = logging.getLogger(__name__)


@runtime_checkable
class ProofVerifier(Protocol):
    """Consumed interface of the external proof verifier."""

    async def verify(self, proof: Proof) -> bool:
        ...

    async def transform(self, proof: Proof) -> VerifiedClaim:
        ...


def claim_identifier(provider: str, parameters: str, context: str) -> str:
    """Identifier binding a claim to its provider, request and context."""
    return sha256_hex(f"{provider}\n{parameters}\n{context}".encode("utf-8"))


def signing_message(identifier: str, owner: str, timestamp_s: int, epoch: int) -> bytes:
    """Bytes an attestor signs for a claim."""
    return f"{identifier}\n{owner}\n{timestamp_s}\n{epoch}".encode("utf-8")


class AttestorProofVerifier:
    """Verifies attestor Ed25519 signatures over proof claims.

    Parameters
    ----------
    trusted_public_keys:
        Hex-encoded Ed25519 public keys of attestors whose signatures are
        accepted. With no keys configured every proof is rejected.
    """

    def __init__(self, trusted_public_keys: list[str]) -> None:
        self._keys: list[nacl.signing.VerifyKey] = []
        for key_hex in trusted_public_keys:
            try:
                self._keys.append(nacl.signing.VerifyKey(bytes.fromhex(key_hex)))
            except ValueError as exc:
                raise ValueError(f"Invalid attestor public key: {key_hex[:16]}...") from exc
        if not self._keys:
            logger.warning("No trusted attestor keys configured; all proofs will be rejected")

    async def verify(self, proof: Proof) -> bool:
        claim_data = proof.payload.get("claimData")
        signatures = proof.payload.get("signatures")
        if not isinstance(claim_data, dict) or not isinstance(signatures, list):
            logger.warning("Proof is missing claimData or signatures")
            return False

        try:
            provider = str(claim_data["provider"])
            parameters = str(claim_data["parameters"])
            context = str(claim_data["context"])
            identifier = str(claim_data["identifier"])
            owner = str(claim_data.get("owner", ""))
            timestamp_s = int(claim_data.get("timestampS", 0))
            epoch = int(claim_data.get("epoch", 0))
        except (KeyError, TypeError, ValueError):
            logger.warning("Proof claimData is malformed")
            return False

        if claim_identifier(provider, parameters, context) != identifier:
            logger.warning("Proof identifier does not match its claim content")
            return False

        message = signing_message(identifier, owner, timestamp_s, epoch)
        for signature_hex in signatures:
            try:
                signature = bytes.fromhex(str(signature_hex))
            except ValueError:
                continue
            for key in self._keys:
                try:
                    key.verify(message, signature)
                except (BadSignatureError, ValueError):
                    continue
                logger.info("Proof %s verified", identifier[:12])
                return True

        logger.warning("No trusted attestor signature on proof %s", identifier[:12])
        return False

    async def transform(self, proof: Proof) -> VerifiedClaim:
        """Parse a verified proof into a named-field VerifiedClaim."""
        claim_data: dict[str, Any] = proof.payload.get("claimData") or {}
        try:
            context = json.loads(claim_data["context"])
            extracted = context["extractedParameters"]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProofVerificationError(
                "Proof context has no extracted parameters."
            ) from exc
        if not isinstance(extracted, dict) or not all(
            isinstance(v, str) for v in extracted.values()
        ):
            raise ProofVerificationError("Proof extracted parameters are malformed.")

        return VerifiedClaim(
            identifier=str(claim_data["identifier"]),
            fields=dict(extracted),
            provider=str(claim_data.get("provider", "http")),
            owner=str(claim_data.get("owner", "")),
            timestamp_s=int(claim_data.get("timestampS", 0)),
            epoch=int(claim_data.get("epoch", 0)),
        )
