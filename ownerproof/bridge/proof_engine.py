"""Proof engine bridge — contract plus an HTTP adapter to a zk-fetch service.

Bridge boundary
---------------
The proof engine re-performs the HTTP request described by a
ProofRequestSpec in its own execution context and returns a signed proof
that the response matched the given patterns. It never trusts a copy of
the response supplied by this service.

``generate_proof`` returns ``None`` when the engine produced no proof; the
orchestrator turns that into ``ProofGenerationError``.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import httpx

from ownerproof.core.errors import ProofGenerationError
from ownerproof.models.proof import Proof, ProofRequestSpec

logger = logging.getLogger(__name__)


@runtime_checkable
class ProofEngine(Protocol):
    """Consumed interface of the external proof-generation service."""

    async def generate_proof(self, spec: ProofRequestSpec) -> Proof | None:
        ...


class HttpProofEngine:
    """Calls a zk-fetch proof service over HTTP.

    Headers (which carry the live access token) travel in the private
    options so the service can replay the request without publishing them
    in the proof.

    Parameters
    ----------
    client:
        Shared ``httpx.AsyncClient``.
    service_url:
        Base URL of the proof service; requests go to ``{service_url}/zkfetch``.
    app_id, app_secret:
        Application credentials registered with the proof service.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        service_url: str,
        app_id: str,
        app_secret: str,
    ) -> None:
        self._client = client
        self._endpoint = f"{service_url.rstrip('/')}/zkfetch"
        self._app_id = app_id
        self._app_secret = app_secret

    async def generate_proof(self, spec: ProofRequestSpec) -> Proof | None:
        body = {
            "url": spec.url,
            "publicOptions": {"method": spec.method},
            "privateOptions": {
                "headers": spec.headers,
                "responseMatches": [p.to_wire() for p in spec.patterns],
            },
        }
        headers = {
            "X-App-Id": self._app_id,
            "Authorization": f"Bearer {self._app_secret}",
        }
        logger.info(
            "Requesting proof for %s %s (%d patterns)",
            spec.method,
            spec.url,
            len(spec.patterns),
        )
        try:
            response = await self._client.post(self._endpoint, json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Proof service transport error: %s", exc)
            raise ProofGenerationError() from exc

        if response.is_error:
            logger.error(
                "Proof service failed: status=%s body=%s",
                response.status_code,
                response.text[:200],
            )
            raise ProofGenerationError()

        if response.status_code == 204 or not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProofGenerationError() from exc
        if not payload:
            return None
        if not isinstance(payload, dict):
            raise ProofGenerationError()
        return Proof(payload=payload)
