"""Shared test fixtures for ownerproof."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import nacl.signing
import pytest

from ownerproof.bridge.proof_verifier import (
    AttestorProofVerifier,
    claim_identifier,
    signing_message,
)
from ownerproof.config import ServiceConfig
from ownerproof.core.artifact_store import ContentAddressedStore
from ownerproof.core.orchestrator import PipelineOrchestrator
from ownerproof.core.proof_request import ProofRequestBuilder
from ownerproof.core.resource_fetcher import ResourceFetcher
from ownerproof.core.run_ledger import RunLedger
from ownerproof.core.state_machine import RunStateMachine
from ownerproof.core.token_exchanger import TokenExchanger
from ownerproof.core.token_store import TokenStore
from ownerproof.models.metadata import PublishedArtifact
from ownerproof.models.proof import Proof, ProofRequestSpec, VerifiedClaim
from ownerproof.models.resource import ResourceSnapshot
from ownerproof.models.tokens import TokenSet
from ownerproof.publishers.local_store import ContentStorePublisher

TOKEN_URL = "https://oauth.test/token"
CHANNELS_URL = "https://youtube.test/v3/channels"

CHANNEL_ID = "UC_x5XG1OV2P6uZZ5FSM9Ttw"
CHANNEL_TITLE = "Google for Developers"
CHANNEL_IMAGE = "https://yt3.ggpht.com/channel-high.jpg"


# ---------------------------------------------------------------------------
# Storage and state fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def ledger(tmp_dir: Path) -> RunLedger:
    """Provide a fresh RunLedger backed by a temp SQLite database."""
    return RunLedger(tmp_dir / "test_ledger.db")


@pytest.fixture
def artifact_store(tmp_dir: Path) -> ContentAddressedStore:
    """Provide a fresh ContentAddressedStore in a temp directory."""
    return ContentAddressedStore(tmp_dir / "artifacts")


@pytest.fixture
def state_machine(ledger: RunLedger) -> RunStateMachine:
    """Provide a RunStateMachine wired to the test ledger."""
    return RunStateMachine(ledger)


@pytest.fixture
def token_store() -> TokenStore:
    return TokenStore(default_ttl=600)


@pytest.fixture
def run_id() -> str:
    """Provide a deterministic test run ID."""
    return "op-test-run-001"


@pytest.fixture
def service_config(tmp_dir: Path) -> ServiceConfig:
    """A complete configuration pointing at the stub upstreams."""
    return ServiceConfig(
        _env_file=None,
        google_client_id="client-123.apps.googleusercontent.com",
        google_client_secret="client-secret",
        google_redirect_uri="http://localhost:8080/oauth2callback",
        google_token_url=TOKEN_URL,
        youtube_channels_url=CHANNELS_URL,
        proof_app_id="proof-app",
        proof_app_secret="proof-secret",
        storage_token="storage-token",
        artifact_store_path=tmp_dir / "artifacts",
        ledger_path=tmp_dir / "ledger.db",
    )


# ---------------------------------------------------------------------------
# Domain object factories
# ---------------------------------------------------------------------------


@pytest.fixture
def tokens() -> TokenSet:
    return TokenSet(
        access_token="ya29.access-token",
        refresh_token="1//refresh-token",
        expires_in=3599,
        scope="https://www.googleapis.com/auth/youtube.readonly",
    )


@pytest.fixture
def make_channel_item() -> Callable[..., dict[str, Any]]:
    """Factory fixture: one ``channels`` API item with sensible defaults."""

    def _factory(
        channel_id: str = CHANNEL_ID,
        title: str = CHANNEL_TITLE,
        **statistics: Any,
    ) -> dict[str, Any]:
        return {
            "kind": "youtube#channel",
            "id": channel_id,
            "snippet": {
                "title": title,
                "description": "Official channel",
                "publishedAt": "2007-08-23T00:34:43Z",
                "thumbnails": {
                    "default": {"url": "https://yt3.ggpht.com/channel-default.jpg"},
                    "high": {"url": CHANNEL_IMAGE},
                },
            },
            "statistics": statistics
            or {"subscriberCount": "2400000", "viewCount": "250000000", "videoCount": "6100"},
        }

    return _factory


@pytest.fixture
def snapshot() -> ResourceSnapshot:
    return ResourceSnapshot(
        identifier=CHANNEL_ID,
        title=CHANNEL_TITLE,
        statistics={"subscriberCount": 2400000, "viewCount": 250000000, "videoCount": 6100},
        image_url=CHANNEL_IMAGE,
    )


@pytest.fixture
def claim() -> VerifiedClaim:
    return VerifiedClaim(
        identifier="a" * 64,
        fields={"channelId": CHANNEL_ID, "title": CHANNEL_TITLE},
        owner="0xowner",
        timestamp_s=1700000000,
        epoch=1,
    )


# ---------------------------------------------------------------------------
# Attestor keys and signed proofs
# ---------------------------------------------------------------------------


@pytest.fixture
def signing_key() -> nacl.signing.SigningKey:
    return nacl.signing.SigningKey.generate()


@pytest.fixture
def verifier(signing_key: nacl.signing.SigningKey) -> AttestorProofVerifier:
    """AttestorProofVerifier trusting only the test signing key."""
    return AttestorProofVerifier([signing_key.verify_key.encode().hex()])


@pytest.fixture
def make_signed_proof(
    signing_key: nacl.signing.SigningKey,
) -> Callable[..., Proof]:
    """Factory fixture: a proof over *extracted* signed by the test attestor."""

    def _factory(
        extracted: dict[str, str] | None = None,
        *,
        url: str = CHANNELS_URL,
        key: nacl.signing.SigningKey | None = None,
    ) -> Proof:
        if extracted is None:
            extracted = {"channelId": CHANNEL_ID, "title": CHANNEL_TITLE}
        parameters = json.dumps({"url": url, "method": "GET"}, sort_keys=True)
        context = json.dumps({"extractedParameters": extracted}, sort_keys=True)
        identifier = claim_identifier("http", parameters, context)
        message = signing_message(identifier, "0xowner", 1700000000, 1)
        signature = (key or signing_key).sign(message).signature
        return Proof(
            payload={
                "claimData": {
                    "provider": "http",
                    "parameters": parameters,
                    "context": context,
                    "owner": "0xowner",
                    "timestampS": 1700000000,
                    "epoch": 1,
                    "identifier": identifier,
                },
                "signatures": [signature.hex()],
            }
        )

    return _factory


# ---------------------------------------------------------------------------
# Upstream HTTP stand-ins
# ---------------------------------------------------------------------------


class UpstreamStub:
    """Scriptable token endpoint and channels API behind ``httpx.MockTransport``.

    Each queue holds ``(status, json_body)`` pairs consumed in order; the
    last pair repeats once the queue is down to one.
    """

    def __init__(self, channel_item: dict[str, Any]) -> None:
        self.token_responses: list[tuple[int, Any]] = [
            (
                200,
                {
                    "access_token": "ya29.access-token",
                    "refresh_token": "1//refresh-token",
                    "expires_in": 3599,
                    "token_type": "Bearer",
                    "scope": "https://www.googleapis.com/auth/youtube.readonly",
                },
            )
        ]
        self.channel_responses: list[tuple[int, Any]] = [(200, {"items": [channel_item]})]
        self.requests: list[httpx.Request] = []

    def calls_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if _base_url(r) == url]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        base = _base_url(request)
        if base == TOKEN_URL:
            queue = self.token_responses
        elif base == CHANNELS_URL:
            queue = self.channel_responses
        else:
            return httpx.Response(404, json={"error": "unknown route"})
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, json=body)


def _base_url(request: httpx.Request) -> str:
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


@pytest.fixture
def upstream(make_channel_item: Callable[..., dict[str, Any]]) -> UpstreamStub:
    return UpstreamStub(make_channel_item())


@pytest.fixture
def http_client(upstream: UpstreamStub) -> httpx.AsyncClient:
    """AsyncClient whose every request is answered by the upstream stub."""
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


# ---------------------------------------------------------------------------
# Pipeline collaborator doubles
# ---------------------------------------------------------------------------


class SigningProofEngine:
    """Proof engine stand-in that attests to fixed extracted values."""

    def __init__(
        self,
        make_proof: Callable[..., Proof],
        extracted: dict[str, str] | None = None,
    ) -> None:
        self._make_proof = make_proof
        self.extracted = extracted
        self.produce = True
        self.specs: list[ProofRequestSpec] = []

    async def generate_proof(self, spec: ProofRequestSpec) -> Proof | None:
        self.specs.append(spec)
        if not self.produce:
            return None
        return self._make_proof(self.extracted, url=spec.url)


class RecordingVerifier:
    """Wraps a real verifier and counts calls."""

    def __init__(self, inner: AttestorProofVerifier) -> None:
        self._inner = inner
        self.verify_calls = 0
        self.transform_calls = 0

    async def verify(self, proof: Proof) -> bool:
        self.verify_calls += 1
        return await self._inner.verify(proof)

    async def transform(self, proof: Proof) -> VerifiedClaim:
        self.transform_calls += 1
        return await self._inner.transform(proof)


class RecordingPublisher:
    """Wraps a real publisher and keeps every payload it was given."""

    def __init__(self, inner: ContentStorePublisher) -> None:
        self._inner = inner
        self.published: list[bytes] = []

    @property
    def backend_name(self) -> str:
        return self._inner.backend_name

    async def publish(self, data: bytes) -> PublishedArtifact:
        self.published.append(data)
        return await self._inner.publish(data)


@pytest.fixture
def proof_engine(make_signed_proof: Callable[..., Proof]) -> SigningProofEngine:
    return SigningProofEngine(make_signed_proof)


@pytest.fixture
def recording_verifier(verifier: AttestorProofVerifier) -> RecordingVerifier:
    return RecordingVerifier(verifier)


@pytest.fixture
def publisher(artifact_store: ContentAddressedStore) -> RecordingPublisher:
    return RecordingPublisher(ContentStorePublisher(artifact_store))


@pytest.fixture
def make_orchestrator(
    http_client: httpx.AsyncClient,
    proof_engine: SigningProofEngine,
    recording_verifier: RecordingVerifier,
    publisher: RecordingPublisher,
    token_store: TokenStore,
    ledger: RunLedger,
) -> Callable[..., PipelineOrchestrator]:
    """Factory fixture: an orchestrator over the stubbed upstreams."""

    def _factory(**overrides: Any) -> PipelineOrchestrator:
        exchanger = TokenExchanger(
            http_client,
            client_id="client-123",
            client_secret="client-secret",
            redirect_uri="http://localhost:8080/oauth2callback",
            token_url=TOKEN_URL,
        )
        kwargs: dict[str, Any] = {
            "exchanger": exchanger,
            "fetcher": ResourceFetcher(http_client, exchanger, channels_url=CHANNELS_URL),
            "proof_engine": proof_engine,
            "proof_verifier": recording_verifier,
            "publisher": publisher,
            "proof_requests": ProofRequestBuilder(channels_url=CHANNELS_URL),
            "token_store": token_store,
            "ledger": ledger,
            "stage_timeout": 5.0,
        }
        kwargs.update(overrides)
        return PipelineOrchestrator(**kwargs)

    return _factory
