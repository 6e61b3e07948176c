"""Local content-addressed publisher backed by ContentAddressedStore."""

from __future__ import annotations

import asyncio
import logging

from ownerproof.core.artifact_store import ArtifactIntegrityError, ContentAddressedStore
from ownerproof.core.errors import PublishError
from ownerproof.models.metadata import PublishedArtifact

logger = logging.getLogger(__name__)


class ContentStorePublisher:
    """Publishes metadata into the local content-addressed store.

    The URI is ``{uri_prefix}{sha256 hex}``, so identical bytes always give
    the same URI.

    Parameters
    ----------
    store:
        The ContentAddressedStore instance to write into.
    uri_prefix:
        Prefix of returned URIs (e.g. a static file server base URL).
    """

    def __init__(self, store: ContentAddressedStore, uri_prefix: str = "cas://sha256/") -> None:
        self._store = store
        self._uri_prefix = uri_prefix

    @property
    def backend_name(self) -> str:
        return "local"

    async def publish(self, data: bytes) -> PublishedArtifact:
        try:
            address = await asyncio.to_thread(self._store.store, data)
        except (OSError, ArtifactIntegrityError) as exc:
            logger.error("Local publish failed: %s", exc)
            raise PublishError(f"Failed to publish metadata: {exc}") from exc

        digest = address.removeprefix("sha256:")
        uri = f"{self._uri_prefix}{digest}"
        logger.info("Published metadata to %s", uri)
        return PublishedArtifact(uri=uri, content_address=address, data=data)
