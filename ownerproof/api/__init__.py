"""HTTP surface — FastAPI app factory and routes.

The API layer only translates: it starts a pipeline run per OAuth callback
and maps classified pipeline errors to HTTP statuses.
"""

from ownerproof.api.app import create_app

__all__ = ["create_app"]
