"""
Adapters for the promoter.

- res_client: httpx client for the RES management API (one per server).
- artifact_store: local staging directory for downloaded archives.

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .artifact_store import ArtifactStore
from .res_client import ResApiClient, ScopedBasicAuth

__all__ = [
    "ArtifactStore",
    "ResApiClient",
    "ScopedBasicAuth",
]
