"""Pipeline orchestrator — drives one grant through to a published artifact.

    Start -> Exchanged -> Fetched -> ProofGenerated -> Verified
          -> MetadataBuilt -> Published -> Done

Any stage failure moves the run to Failed(stage, reason) and the original
exception propagates unchanged. Nothing is rolled back: every prior side
effect is read-only or owned by an external service, and nothing is
published before the Published state.

Every external call is bounded by ``stage_timeout``; a timeout is reported
as the failing stage's own error kind.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import TypeVar

import httpx

from ownerproof.bridge.proof_engine import HttpProofEngine, ProofEngine
from ownerproof.bridge.proof_verifier import AttestorProofVerifier, ProofVerifier
from ownerproof.config import ServiceConfig
from ownerproof.core.artifact_store import ContentAddressedStore
from ownerproof.core.errors import (
    GrantError,
    PipelineError,
    ProofGenerationError,
    ProofVerificationError,
    PublishError,
    ResourceFetchError,
    SchemaError,
)
from ownerproof.core.hasher import compute_output_hash, sha256_hex
from ownerproof.core.metadata_builder import MetadataBuilder
from ownerproof.core.proof_request import ProofRequestBuilder
from ownerproof.core.resource_fetcher import ResourceFetcher
from ownerproof.core.run_ledger import RunLedger
from ownerproof.core.state_machine import PipelineRun, RunStateMachine
from ownerproof.core.token_exchanger import TokenExchanger
from ownerproof.core.token_store import TokenStore, identity_key, run_key
from ownerproof.models.metadata import NFTMetadata, PipelineResult
from ownerproof.models.stages import PipelineState
from ownerproof.models.tokens import AuthorizationGrant, TokenSet
from ownerproof.publishers import ArtifactPublisher
from ownerproof.publishers.ipfs import IpfsPublisher
from ownerproof.publishers.local_store import ContentStorePublisher

logger = logging.getLogger(__name__)

T = TypeVar("T")


def new_run_id() -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"op-{ts}-{uuid.uuid4().hex[:8]}"


class PipelineOrchestrator:
    """Sequences the pipeline collaborators for each inbound grant.

    Holds no per-run mutable state: each ``run()`` call owns its own
    PipelineRun and keys its tokens by run id in the TokenStore, so runs
    for different users may execute concurrently.

    Parameters
    ----------
    exchanger, fetcher, proof_engine, proof_verifier, publisher:
        Stage collaborators.
    metadata_builder:
        Metadata template strategy. Defaults to the YouTube ownership shape.
    proof_requests:
        Builds the ProofRequestSpec. Its field names must cover every claim
        field the metadata template reads.
    token_store:
        Keyed token storage shared by runs (entries never overlap).
    ledger:
        Optional Run Ledger recording every transition.
    stage_timeout:
        Upper bound in seconds for each external call.
    """

    def __init__(
        self,
        *,
        exchanger: TokenExchanger,
        fetcher: ResourceFetcher,
        proof_engine: ProofEngine,
        proof_verifier: ProofVerifier,
        publisher: ArtifactPublisher,
        metadata_builder: MetadataBuilder | None = None,
        proof_requests: ProofRequestBuilder | None = None,
        token_store: TokenStore | None = None,
        ledger: RunLedger | None = None,
        stage_timeout: float = 60.0,
        run_token_ttl: int = 900,
        identity_token_ttl: int = 30 * 24 * 3600,
    ) -> None:
        self.exchanger = exchanger
        self.fetcher = fetcher
        self.proof_engine = proof_engine
        self.proof_verifier = proof_verifier
        self.publisher = publisher
        self.metadata_builder = (
            metadata_builder if metadata_builder is not None else MetadataBuilder()
        )
        self.proof_requests = (
            proof_requests if proof_requests is not None else ProofRequestBuilder()
        )
        self.token_store = token_store if token_store is not None else TokenStore()
        self.ledger = ledger
        self.state_machine = RunStateMachine(ledger)
        self._stage_timeout = stage_timeout
        self._run_token_ttl = run_token_ttl
        self._identity_token_ttl = identity_token_ttl

        # Debug/inspection only (GET /getmetadata); never read by a run.
        self.last_metadata: NFTMetadata | None = None

        uncovered = set(self.metadata_builder.verified_fields) - set(
            self.proof_requests.field_names
        )
        if uncovered:
            raise SchemaError(
                "Metadata template reads claim fields the proof request does not "
                f"extract: {', '.join(sorted(uncovered))}"
            )

    @classmethod
    def from_config(
        cls, config: ServiceConfig, client: httpx.AsyncClient
    ) -> PipelineOrchestrator:
        """Wire the default collaborators from service configuration."""
        exchanger = TokenExchanger(
            client,
            client_id=config.google_client_id,
            client_secret=config.google_client_secret,
            redirect_uri=config.google_redirect_uri,
            token_url=config.google_token_url,
        )
        fetcher = ResourceFetcher(
            client, exchanger, channels_url=config.youtube_channels_url
        )
        publisher: ArtifactPublisher
        if config.publisher_backend == "ipfs":
            publisher = IpfsPublisher(
                client,
                api_url=config.storage_api_url,
                token=config.storage_token,
                gateway_template=config.storage_gateway_template,
            )
        else:
            publisher = ContentStorePublisher(
                ContentAddressedStore(config.artifact_store_path),
                uri_prefix=config.local_uri_prefix,
            )
        return cls(
            exchanger=exchanger,
            fetcher=fetcher,
            proof_engine=HttpProofEngine(
                client,
                service_url=config.proof_service_url,
                app_id=config.proof_app_id,
                app_secret=config.proof_app_secret,
            ),
            proof_verifier=AttestorProofVerifier(config.attestor_public_keys),
            publisher=publisher,
            proof_requests=ProofRequestBuilder(channels_url=config.youtube_channels_url),
            token_store=TokenStore(default_ttl=config.run_token_ttl_seconds),
            ledger=RunLedger(config.ledger_path),
            stage_timeout=config.stage_timeout_seconds,
            run_token_ttl=config.run_token_ttl_seconds,
            identity_token_ttl=config.identity_token_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    async def run(self, code: str | None, *, run_id: str | None = None) -> PipelineResult:
        """Execute the full pipeline for one authorization code.

        Raises the failing stage's ``PipelineError`` subclass, or whatever
        unclassified exception a collaborator raised.
        """
        run = self.state_machine.start(run_id or new_run_id())
        tokens_key = run_key(run.run_id)
        log_extra = {"run_id": run.run_id}
        logger.info("Run %s started", run.run_id, extra=log_extra)

        try:
            result = await self._execute(run, AuthorizationGrant(code=code or ""), tokens_key)
        except PipelineError as exc:
            await self._record_failure(run, exc.message)
            stage = run.failed_stage.value if run.failed_stage else "?"
            logger.warning(
                "Run %s failed at %s: %s",
                run.run_id,
                stage,
                exc.message,
                extra={**log_extra, "stage": stage},
            )
            raise
        except asyncio.CancelledError:
            await self._record_failure(run, "cancelled")
            logger.warning("Run %s cancelled", run.run_id, extra=log_extra)
            raise
        except Exception as exc:
            await self._record_failure(run, f"unexpected error: {exc}")
            logger.exception("Run %s failed unexpectedly", run.run_id, extra=log_extra)
            raise
        finally:
            await self.token_store.discard(tokens_key)

        logger.info("Run %s done: %s", run.run_id, result.token_uri, extra=log_extra)
        return result

    async def _execute(
        self, run: PipelineRun, grant: AuthorizationGrant, tokens_key: str
    ) -> PipelineResult:
        # 1. Token exchange
        tokens = await self._bounded(
            self.exchanger.exchange(grant), GrantError("Token exchange timed out.")
        )
        await self.token_store.put(tokens_key, tokens, ttl=self._run_token_ttl)
        await self._advance(run, PipelineState.EXCHANGED)

        # 2. Resource fetch (may refresh the access token once)
        fetched = await self._bounded(
            self.fetcher.fetch(tokens), ResourceFetchError("Channel fetch timed out.")
        )
        snapshot = fetched.snapshot
        live_tokens = await self._with_remembered_refresh(fetched.tokens, snapshot.identifier)
        if live_tokens != tokens:
            await self.token_store.put(tokens_key, live_tokens, ttl=self._run_token_ttl)
        await self._advance(
            run,
            PipelineState.FETCHED,
            output_hash=compute_output_hash("resource_fetch", snapshot.model_dump(mode="json")),
        )

        # 3. Proof generation over the live, authenticated request
        spec = self.proof_requests.build(snapshot, live_tokens)
        proof = await self._bounded(
            self.proof_engine.generate_proof(spec), ProofGenerationError()
        )
        if proof is None:
            raise ProofGenerationError()
        await self._advance(run, PipelineState.PROOF_GENERATED)

        # 4. Verify, and only then transform
        valid = await self._bounded(
            self.proof_verifier.verify(proof), ProofVerificationError("Proof verification timed out.")
        )
        if not valid:
            raise ProofVerificationError()
        claim = await self._bounded(
            self.proof_verifier.transform(proof),
            ProofVerificationError("Proof verification timed out."),
        )
        await self._advance(
            run,
            PipelineState.VERIFIED,
            output_hash=compute_output_hash("proof_verification", claim.model_dump(mode="json")),
        )

        # 5. Deterministic metadata
        metadata = self.metadata_builder.build(claim, snapshot)
        data = metadata.to_bytes()
        await self._advance(run, PipelineState.METADATA_BUILT, output_hash=sha256_hex(data))

        # 6. Publish
        artifact = await self._bounded(
            self.publisher.publish(data), PublishError("Metadata publish timed out.")
        )
        await self._advance(
            run,
            PipelineState.PUBLISHED,
            artifact_references=[artifact.content_address, artifact.uri],
        )
        self.last_metadata = metadata

        if live_tokens.can_refresh:
            await self.token_store.put(
                identity_key(snapshot.identifier),
                live_tokens,
                ttl=self._identity_token_ttl,
            )
        await self._advance(run, PipelineState.DONE)

        return PipelineResult(
            run_id=run.run_id,
            channel_id=claim.fields["channelId"],
            token_uri=artifact.uri,
            metadata=metadata,
            artifact=artifact,
        )

    async def _with_remembered_refresh(self, tokens: TokenSet, identifier: str) -> TokenSet:
        """Carry over the refresh token remembered for *identifier*.

        A provider only returns a refresh token on first consent; later
        grants for the same account come back access-only.
        """
        if tokens.can_refresh:
            return tokens
        remembered = await self.token_store.get(identity_key(identifier))
        if remembered is None or not remembered.can_refresh:
            return tokens
        logger.info("Reusing remembered refresh token for %s", identifier)
        return tokens.model_copy(update={"refresh_token": remembered.refresh_token})

    async def _bounded(self, awaitable: Awaitable[T], on_timeout: PipelineError) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._stage_timeout)
        except asyncio.TimeoutError:
            raise on_timeout from None

    # Ledger writes are blocking SQLite calls; keep them off the event loop.

    async def _advance(
        self,
        run: PipelineRun,
        target_state: PipelineState,
        *,
        output_hash: str = "",
        artifact_references: list[str] | None = None,
    ) -> None:
        await asyncio.to_thread(
            self.state_machine.advance,
            run,
            target_state,
            output_hash=output_hash,
            artifact_references=artifact_references,
        )

    async def _record_failure(self, run: PipelineRun, reason: str) -> None:
        stage = run.current_stage
        if stage is None:
            return
        await asyncio.to_thread(self.state_machine.fail, run, stage, reason)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def verify_chain(self, run_id: str) -> bool:
        """Verify the hash chain of a run's ledger entries."""
        if self.ledger is None:
            return True
        return self.ledger.verify_chain(run_id)
