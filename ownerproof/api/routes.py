"""Routes: health, consent redirect, OAuth callback, last metadata."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from ownerproof.config import ServiceConfig
from ownerproof.core.orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def _orchestrator(request: Request) -> PipelineOrchestrator:
    orchestrator = request.app.state.orchestrator
    if orchestrator is None:
        raise RuntimeError("Pipeline orchestrator is not initialised")
    return orchestrator


@router.get("/", response_class=PlainTextResponse)
async def health() -> str:
    return "ownerproof backend is running"


@router.get("/auth")
async def auth(request: Request) -> RedirectResponse:
    """Redirect the user to the Google consent screen."""
    config: ServiceConfig = request.app.state.config
    query = urlencode(
        {
            "client_id": config.google_client_id,
            "redirect_uri": config.google_redirect_uri,
            "response_type": "code",
            "scope": config.oauth_scope,
            "access_type": "offline",
            "prompt": "consent",
        }
    )
    return RedirectResponse(f"{config.google_auth_url}?{query}", status_code=307)


@router.get("/oauth2callback")
async def oauth2callback(request: Request, code: str | None = None) -> dict[str, str]:
    """Run the full pipeline for the authorization code in the query string.

    Pipeline errors propagate to the app's exception handlers.
    """
    result = await _orchestrator(request).run(code)
    return result.response_body()


@router.get("/getmetadata")
async def get_metadata(request: Request) -> dict[str, Any]:
    """Return the most recently built metadata document."""
    metadata = _orchestrator(request).last_metadata
    if metadata is None:
        raise HTTPException(status_code=404, detail="No metadata has been built yet.")
    return {"metadata": metadata.model_dump(mode="json")}
