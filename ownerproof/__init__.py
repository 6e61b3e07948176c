"""ownerproof: Verified YouTube channel ownership as NFT metadata.

One OAuth callback drives a forward-only pipeline:
  - Authorization code -> OAuth tokens (single refresh-and-retry on fetch)
  - Channel snapshot from the YouTube Data API
  - zk proof over the live authenticated request, attestor-verified
  - Deterministic metadata built only from verified claim fields
  - Content-addressed publish (local store or IPFS)
  - Every run transition recorded in a hash-chained SQLite ledger
"""

__version__ = "0.1.0"
__description__ = "Proof-of-ownership NFT metadata pipeline for YouTube channels"

from ownerproof.core.orchestrator import PipelineOrchestrator
from ownerproof.api.app import create_app
from ownerproof.cli.app import app as cli

__all__ = ["PipelineOrchestrator", "create_app", "cli", "__version__"]
