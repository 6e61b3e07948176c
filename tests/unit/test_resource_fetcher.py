"""Tests for ResourceFetcher — snapshot parsing and the single refresh retry."""

from __future__ import annotations

import httpx
import pytest

from ownerproof.core.errors import NoResourceError, ResourceFetchError
from ownerproof.core.resource_fetcher import ResourceFetcher, parse_channel_snapshot
from ownerproof.core.token_exchanger import TokenExchanger
from ownerproof.models.tokens import TokenSet

from tests.conftest import (
    CHANNEL_ID,
    CHANNEL_IMAGE,
    CHANNEL_TITLE,
    CHANNELS_URL,
    TOKEN_URL,
    UpstreamStub,
)


def _fetcher(client: httpx.AsyncClient) -> ResourceFetcher:
    exchanger = TokenExchanger(
        client,
        client_id="client-123",
        client_secret="client-secret",
        redirect_uri="http://localhost:8080/oauth2callback",
        token_url=TOKEN_URL,
    )
    return ResourceFetcher(client, exchanger, channels_url=CHANNELS_URL)


class TestParseChannelSnapshot:
    def test_parses_identity_and_statistics(self, make_channel_item):
        snap = parse_channel_snapshot(make_channel_item())
        assert snap.identifier == CHANNEL_ID
        assert snap.title == CHANNEL_TITLE
        assert snap.image_url == CHANNEL_IMAGE
        assert snap.statistics == {
            "subscriberCount": 2400000,
            "viewCount": 250000000,
            "videoCount": 6100,
        }

    def test_hidden_subscriber_count_is_absent(self, make_channel_item):
        item = make_channel_item(
            subscriberCount="0", hiddenSubscriberCount=True, viewCount="10"
        )
        snap = parse_channel_snapshot(item)
        assert "subscriberCount" not in snap.statistics
        assert snap.statistics["viewCount"] == 10

    def test_thumbnail_falls_back_to_default(self, make_channel_item):
        item = make_channel_item()
        del item["snippet"]["thumbnails"]["high"]
        assert parse_channel_snapshot(item).image_url.endswith("channel-default.jpg")

    def test_missing_id_is_fetch_error(self, make_channel_item):
        item = make_channel_item()
        del item["id"]
        with pytest.raises(ResourceFetchError):
            parse_channel_snapshot(item)


class TestFetch:
    @pytest.mark.asyncio
    async def test_fetch_sends_bearer_token(self, http_client, upstream: UpstreamStub, tokens):
        result = await _fetcher(http_client).fetch(tokens)

        assert result.snapshot.identifier == CHANNEL_ID
        assert result.refreshed is False
        assert result.tokens == tokens
        (request,) = upstream.calls_to(CHANNELS_URL)
        assert request.headers["Authorization"] == "Bearer ya29.access-token"
        assert request.url.params["mine"] == "true"
        assert request.url.params["part"] == "snippet,contentDetails,statistics"

    @pytest.mark.asyncio
    async def test_zero_items_is_no_resource(self, http_client, upstream: UpstreamStub, tokens):
        upstream.channel_responses = [(200, {"items": []})]
        with pytest.raises(NoResourceError, match="No YouTube channel found."):
            await _fetcher(http_client).fetch(tokens)

    @pytest.mark.asyncio
    async def test_expired_token_refreshes_exactly_once(
        self, http_client, upstream: UpstreamStub, tokens, make_channel_item
    ):
        upstream.channel_responses = [
            (401, {"error": "unauthorized"}),
            (200, {"items": [make_channel_item()]}),
        ]
        upstream.token_responses = [(200, {"access_token": "ya29.fresh", "expires_in": 3599})]

        result = await _fetcher(http_client).fetch(tokens)

        assert result.refreshed is True
        assert result.tokens.access_token == "ya29.fresh"
        assert result.tokens.refresh_token == tokens.refresh_token
        assert len(upstream.calls_to(TOKEN_URL)) == 1
        first, second = upstream.calls_to(CHANNELS_URL)
        assert first.headers["Authorization"] == "Bearer ya29.access-token"
        assert second.headers["Authorization"] == "Bearer ya29.fresh"

    @pytest.mark.asyncio
    async def test_second_auth_failure_is_terminal(
        self, http_client, upstream: UpstreamStub, tokens
    ):
        upstream.channel_responses = [(401, {"error": "unauthorized"})]
        upstream.token_responses = [(200, {"access_token": "ya29.fresh"})]

        with pytest.raises(ResourceFetchError, match="again after refresh"):
            await _fetcher(http_client).fetch(tokens)
        assert len(upstream.calls_to(TOKEN_URL)) == 1
        assert len(upstream.calls_to(CHANNELS_URL)) == 2

    @pytest.mark.asyncio
    async def test_no_refresh_token_means_no_retry(self, http_client, upstream: UpstreamStub):
        upstream.channel_responses = [(403, {"error": "forbidden"})]
        with pytest.raises(ResourceFetchError, match="no refresh token"):
            await _fetcher(http_client).fetch(TokenSet(access_token="ya29.only"))
        assert upstream.calls_to(TOKEN_URL) == []
        assert len(upstream.calls_to(CHANNELS_URL)) == 1

    @pytest.mark.asyncio
    async def test_failed_refresh_is_fetch_error(
        self, http_client, upstream: UpstreamStub, tokens
    ):
        upstream.channel_responses = [(401, {"error": "unauthorized"})]
        upstream.token_responses = [(400, {"error": "invalid_grant"})]
        with pytest.raises(ResourceFetchError, match="Token refresh failed"):
            await _fetcher(http_client).fetch(tokens)
        assert len(upstream.calls_to(CHANNELS_URL)) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self, http_client, upstream: UpstreamStub, tokens):
        upstream.channel_responses = [(503, {"error": "unavailable"})]
        with pytest.raises(ResourceFetchError, match="status 503"):
            await _fetcher(http_client).fetch(tokens)
        assert len(upstream.calls_to(CHANNELS_URL)) == 1
        assert upstream.calls_to(TOKEN_URL) == []
