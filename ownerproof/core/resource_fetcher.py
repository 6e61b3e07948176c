"""Fetch a snapshot of the authenticated user's YouTube channel.

Retry policy: on an authorization failure (401/403), and only when a
refresh token is present, the fetcher refreshes the access token exactly
once and retries exactly once. Any further failure is terminal.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from ownerproof.core.errors import NoResourceError, ResourceFetchError, TokenError
from ownerproof.models.resource import FetchResult, ResourceSnapshot
from ownerproof.models.tokens import TokenSet

logger = logging.getLogger(__name__)

YOUTUBE_CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"

_AUTH_FAILURE_STATUSES = frozenset({401, 403})
_STATISTIC_KEYS = ("subscriberCount", "viewCount", "videoCount")
_THUMBNAIL_PREFERENCE = ("high", "medium", "default")


class TokenRefresher(Protocol):
    """Anything that can trade a TokenSet for a fresh one."""

    async def refresh(self, tokens: TokenSet) -> TokenSet:
        ...


class _AuthorizationFailed(Exception):
    """Internal signal: the provider rejected the access token."""


def parse_channel_snapshot(item: dict[str, Any]) -> ResourceSnapshot:
    """Build a ResourceSnapshot from one ``channels`` API item."""
    snippet = item.get("snippet") or {}
    stats_raw = item.get("statistics") or {}

    statistics: dict[str, int] = {}
    for key in _STATISTIC_KEYS:
        if key == "subscriberCount" and stats_raw.get("hiddenSubscriberCount"):
            continue
        value = stats_raw.get(key)
        if value is None:
            continue
        try:
            statistics[key] = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric statistic %s=%r", key, value)

    thumbnails = snippet.get("thumbnails") or {}
    image_url = ""
    for size in _THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            image_url = url
            break

    identifier = item.get("id")
    title = snippet.get("title")
    if not identifier or title is None:
        raise ResourceFetchError("Channel response is missing id or title.")

    return ResourceSnapshot(
        identifier=identifier,
        title=title,
        description=snippet.get("description", ""),
        published_at=snippet.get("publishedAt", ""),
        statistics=statistics,
        image_url=image_url,
    )


class ResourceFetcher:
    """Retrieves the linked channel with one refresh-and-retry.

    Parameters
    ----------
    client:
        Shared ``httpx.AsyncClient``; its timeout bounds every call.
    refresher:
        Performs the refresh-token grant (normally the TokenExchanger).
    channels_url:
        YouTube Data API ``channels`` endpoint.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        refresher: TokenRefresher,
        *,
        channels_url: str = YOUTUBE_CHANNELS_URL,
    ) -> None:
        self._client = client
        self._refresher = refresher
        self._channels_url = channels_url

    async def fetch(self, tokens: TokenSet) -> FetchResult:
        """Fetch the channel owned by the holder of *tokens*."""
        try:
            payload = await self._get_channels(tokens)
            refreshed = False
        except _AuthorizationFailed:
            if not tokens.can_refresh:
                raise ResourceFetchError(
                    "Access token rejected and no refresh token is available."
                ) from None
            logger.info("Access token rejected; refreshing once and retrying")
            try:
                tokens = await self._refresher.refresh(tokens)
            except TokenError as exc:
                raise ResourceFetchError(f"Token refresh failed: {exc}") from exc
            try:
                payload = await self._get_channels(tokens)
            except _AuthorizationFailed:
                raise ResourceFetchError(
                    "Access token rejected again after refresh."
                ) from None
            refreshed = True

        items = payload.get("items") or []
        if not items:
            logger.warning("Channel lookup returned zero items")
            raise NoResourceError("No YouTube channel found.")

        snapshot = parse_channel_snapshot(items[0])
        logger.info("Fetched channel %s (%s)", snapshot.identifier, snapshot.title)
        return FetchResult(snapshot=snapshot, tokens=tokens, refreshed=refreshed)

    async def _get_channels(self, tokens: TokenSet) -> dict[str, Any]:
        params = {"part": "snippet,contentDetails,statistics", "mine": "true"}
        try:
            response = await self._client.get(
                self._channels_url,
                params=params,
                headers=tokens.authorization_header(),
            )
        except httpx.HTTPError as exc:
            logger.error("Channel fetch transport error: %s", exc)
            raise ResourceFetchError(f"Channel fetch failed: {exc}") from exc

        if response.status_code in _AUTH_FAILURE_STATUSES:
            raise _AuthorizationFailed()
        if response.is_error:
            logger.error(
                "Channel fetch failed: status=%s body=%s",
                response.status_code,
                response.text[:200],
            )
            raise ResourceFetchError(
                f"Channel fetch failed with status {response.status_code}."
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ResourceFetchError("Channel response is not JSON.") from exc
        if not isinstance(payload, dict):
            raise ResourceFetchError("Channel response is not a JSON object.")
        return payload
