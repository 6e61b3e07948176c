"""IPFS pinning-service publisher.

Uploads the metadata document to an HTTP pinning API (web3.storage /
nft.storage style) authenticated with a bearer credential. The service
answers with the CID of the content; because a CID is derived from the
bytes, re-uploading the same document yields the same URI.
"""

from __future__ import annotations

import logging

import httpx

from ownerproof.core.errors import PublishError
from ownerproof.core.hasher import sha256_hex
from ownerproof.models.metadata import PublishedArtifact

logger = logging.getLogger(__name__)


class IpfsPublisher:
    """Publishes metadata to an IPFS pinning service.

    Parameters
    ----------
    client:
        Shared ``httpx.AsyncClient``.
    api_url:
        Base URL of the pinning API; uploads go to ``{api_url}/upload``.
    token:
        Storage-provider credential.
    gateway_template:
        Retrieval URI template with a ``{cid}`` placeholder.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_url: str,
        token: str,
        gateway_template: str = "ipfs://{cid}",
    ) -> None:
        self._client = client
        self._upload_url = f"{api_url.rstrip('/')}/upload"
        self._token = token
        self._gateway_template = gateway_template

    @property
    def backend_name(self) -> str:
        return "ipfs"

    async def publish(self, data: bytes) -> PublishedArtifact:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "X-Name": "metadata.json",
        }
        try:
            response = await self._client.post(self._upload_url, content=data, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("IPFS upload transport error: %s", exc)
            raise PublishError("Failed to upload metadata to storage.") from exc

        if response.is_error:
            logger.error(
                "IPFS upload failed: status=%s body=%s",
                response.status_code,
                response.text[:200],
            )
            raise PublishError("Failed to upload metadata to storage.")

        try:
            cid = response.json()["cid"]
        except (ValueError, KeyError, TypeError) as exc:
            raise PublishError("Storage response did not include a CID.") from exc
        if not isinstance(cid, str) or not cid:
            raise PublishError("Storage response did not include a CID.")

        uri = self._gateway_template.format(cid=cid)
        logger.info("Published metadata to %s", uri)
        return PublishedArtifact(
            uri=uri,
            content_address=f"sha256:{sha256_hex(data)}",
            data=data,
        )
