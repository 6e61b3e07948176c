"""Authorization-code and refresh-token grants against the OAuth token endpoint.

The exchange is never retried: an authorization code is single-use, so
replaying it after a failure would fail too.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from ownerproof.core.errors import GrantError, TokenError
from ownerproof.models.tokens import AuthorizationGrant, TokenSet

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

MAX_CODE_LENGTH = 2048
# Printable ASCII with no whitespace; provider codes are URL-safe.
_CODE_RE = re.compile(r"^[\x21-\x7e]+$")


def validate_grant(grant: AuthorizationGrant) -> None:
    """Reject empty or malformed codes before any network call."""
    code = grant.code
    if not code or not code.strip():
        raise GrantError("No authorization code provided.")
    if len(code) > MAX_CODE_LENGTH or not _CODE_RE.match(code):
        raise GrantError("Malformed authorization code.")


def _token_set_from(payload: dict[str, Any], fallback_refresh: str | None = None) -> TokenSet:
    access_token = payload.get("access_token")
    if not access_token or not isinstance(access_token, str):
        raise TokenError("Failed to obtain access token.")
    expires_in = payload.get("expires_in")
    return TokenSet(
        access_token=access_token,
        refresh_token=payload.get("refresh_token") or fallback_refresh,
        token_type=payload.get("token_type", "Bearer"),
        expires_in=int(expires_in) if expires_in is not None else None,
        scope=payload.get("scope", ""),
    )


class TokenExchanger:
    """Turns an AuthorizationGrant into a TokenSet.

    Parameters
    ----------
    client:
        Shared ``httpx.AsyncClient``; its timeout bounds every call.
    client_id, client_secret, redirect_uri:
        Fixed OAuth client credentials.
    token_url:
        Token endpoint (Google by default).
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        token_url: str = GOOGLE_TOKEN_URL,
    ) -> None:
        self._client = client
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._token_url = token_url

    async def exchange(self, grant: AuthorizationGrant) -> TokenSet:
        """Redeem *grant* exactly once.

        Raises ``GrantError`` if the code is empty, malformed or rejected,
        ``TokenError`` if the response carries no access token.
        """
        validate_grant(grant)
        logger.info("Exchanging authorization code %s", grant.redacted())

        form = {
            "code": grant.code,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "redirect_uri": self._redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            response = await self._client.post(self._token_url, data=form)
        except httpx.HTTPError as exc:
            logger.error("Token exchange transport error: %s", exc)
            raise GrantError("Authorization code was rejected.") from exc

        if response.is_error:
            logger.error(
                "Token endpoint rejected the code: status=%s body=%s",
                response.status_code,
                response.text[:200],
            )
            raise GrantError("Authorization code was rejected.")

        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenError("Failed to obtain access token.") from exc
        if not isinstance(payload, dict):
            raise TokenError("Failed to obtain access token.")

        tokens = _token_set_from(payload)
        logger.info(
            "Token exchange succeeded (refresh_token=%s, expires_in=%s)",
            "yes" if tokens.can_refresh else "no",
            tokens.expires_in,
        )
        return tokens

    async def refresh(self, tokens: TokenSet) -> TokenSet:
        """Use the refresh token in *tokens* to obtain a new access token.

        The provider usually omits ``refresh_token`` in the response; the
        existing one is carried over. Raises ``TokenError`` on any failure.
        """
        if not tokens.refresh_token:
            raise TokenError("No refresh token available.")

        form = {
            "refresh_token": tokens.refresh_token,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "grant_type": "refresh_token",
        }
        try:
            response = await self._client.post(self._token_url, data=form)
        except httpx.HTTPError as exc:
            raise TokenError("Token refresh failed.") from exc

        if response.is_error:
            logger.error("Token refresh rejected: status=%s", response.status_code)
            raise TokenError("Token refresh failed.")

        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenError("Token refresh failed.") from exc
        if not isinstance(payload, dict):
            raise TokenError("Token refresh failed.")

        refreshed = _token_set_from(payload, fallback_refresh=tokens.refresh_token)
        logger.info("Access token refreshed")
        return refreshed
