"""Service configuration — env-driven via pydantic-settings.

Reads from a .env file and OWNERPROOF_* environment variables. Required
credentials default to empty so the settings object can always be built;
``require()`` is the fail-fast startup check.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from ownerproof.core.errors import MissingConfigurationError

ENV_PREFIX = "OWNERPROOF_"

# Settings that must be present before the service may start.
REQUIRED_SETTINGS: tuple[str, ...] = (
    "google_client_id",
    "google_client_secret",
    "google_redirect_uri",
    "proof_app_id",
    "proof_app_secret",
    "storage_token",
)


class ServiceConfig(BaseSettings):
    """Service configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export OWNERPROOF_GOOGLE_CLIENT_ID=...apps.googleusercontent.com
        export OWNERPROOF_PUBLISHER_BACKEND=ipfs
        export OWNERPROOF_ATTESTOR_PUBLIC_KEYS='["<hex>"]'

    Or via .env file::

        OWNERPROOF_ENVIRONMENT=production
        OWNERPROOF_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix=ENV_PREFIX,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = True
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = ["http://localhost:3000"]

    # Identity provider (Google OAuth 2.0)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    oauth_scope: str = "https://www.googleapis.com/auth/youtube.readonly"
    youtube_channels_url: str = "https://www.googleapis.com/youtube/v3/channels"

    # Proof engine and verifier
    proof_service_url: str = "http://localhost:8001"
    proof_app_id: str = ""
    proof_app_secret: str = ""
    attestor_public_keys: list[str] = []  # hex Ed25519 public keys

    # Publishing
    publisher_backend: str = "local"  # "local" or "ipfs"
    storage_token: str = ""
    storage_api_url: str = "https://api.web3.storage"
    storage_gateway_template: str = "https://ipfs.io/ipfs/{cid}"
    artifact_store_path: Path = Path(".ownerproof/artifacts")
    local_uri_prefix: str = "cas://sha256/"

    # Run ledger
    ledger_path: Path = Path(".ownerproof/ledger.db")

    # Timeouts and token lifetimes
    http_timeout_seconds: float = 15.0
    stage_timeout_seconds: float = 60.0
    run_token_ttl_seconds: int = 900
    identity_token_ttl_seconds: int = 30 * 24 * 3600

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    def missing_settings(self) -> list[str]:
        """Environment variable names of required settings that are unset."""
        return [
            f"{ENV_PREFIX}{name.upper()}"
            for name in REQUIRED_SETTINGS
            if not getattr(self, name)
        ]

    def require(self) -> ServiceConfig:
        """Raise ``MissingConfigurationError`` unless every required setting is set."""
        missing = self.missing_settings()
        if missing:
            raise MissingConfigurationError(missing)
        if self.publisher_backend not in ("local", "ipfs"):
            raise MissingConfigurationError(
                [f"{ENV_PREFIX}PUBLISHER_BACKEND (got {self.publisher_backend!r})"]
            )
        return self
