"""Artifact publisher protocol and backends.

Every publisher implements ``ArtifactPublisher``: ``publish(data)`` persists
the metadata bytes to content-addressed storage and returns a
PublishedArtifact. Publishing identical bytes twice must return the same
URI; the orchestrator does not deduplicate calls itself.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ownerproof.models.metadata import PublishedArtifact


@runtime_checkable
class ArtifactPublisher(Protocol):
    """Protocol that every publish backend must implement.

    Implementations raise ``PublishError`` for any storage failure.
    """

    @property
    def backend_name(self) -> str:
        """Return the unique name of this backend."""
        ...

    async def publish(self, data: bytes) -> PublishedArtifact:
        """Persist *data* and return where it can be retrieved."""
        ...
