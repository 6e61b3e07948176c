"""Local content-addressed, immutable document store.

Storage layout: {base_path}/{sha256[0:2]}/{sha256}.json
There is no delete: a document is immutable once stored.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ownerproof.core.hasher import sha256_hex

logger = logging.getLogger(__name__)


class ArtifactIntegrityError(RuntimeError):
    """Raised when a stored document's hash does not match its address."""


class ContentAddressedStore:
    """SHA-256 keyed, immutable document store.

    Storing the same bytes twice is a no-op and returns the same address.

    Parameters
    ----------
    base_path:
        Root directory for stored documents. Created on first use.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)

    @staticmethod
    def _extract_digest(address: str) -> str:
        return address.removeprefix("sha256:")

    def _path_for(self, digest: str) -> Path:
        return self._base / digest[:2] / f"{digest}.json"

    def store(self, data: bytes) -> str:
        """Store *data* and return its ``sha256:<hex>`` address."""
        digest = sha256_hex(data)
        path = self._path_for(digest)

        if path.exists():
            if not self.verify(digest):
                raise ArtifactIntegrityError(
                    f"Existing document at {digest} failed integrity check"
                )
            logger.debug("Document %s already stored", digest[:12])
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            logger.info("Stored document %s (%d bytes)", digest[:12], len(data))

        return f"sha256:{digest}"

    def retrieve(self, address: str) -> bytes:
        """Return the bytes stored under *address* ("sha256:<hex>" or hex)."""
        path = self._path_for(self._extract_digest(address))
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {address}")
        return path.read_bytes()

    def exists(self, address: str) -> bool:
        return self._path_for(self._extract_digest(address)).exists()

    def verify(self, address: str) -> bool:
        """Re-hash stored bytes and compare against the address."""
        digest = self._extract_digest(address)
        path = self._path_for(digest)
        if not path.exists():
            return False
        return sha256_hex(path.read_bytes()) == digest
