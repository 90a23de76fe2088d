"""ytbulk - bulk YouTrack issue mutation with read-back verification.

High-level public API:

from ytbulk import BulkOrchestrator, YouTrackRestClient

client = YouTrackRestClient(base_url="https://acme.youtrack.cloud", token="perm:...")
result = BulkOrchestrator(client).bulk_update(["PROJ-1", "PROJ-2"], {"priority": "Critical"})
print(result.to_dict()["summary"])

``rank_by_criticality`` needs no backend and orders plain issue dicts by
priority and age.
"""

from __future__ import annotations

from .config import BulkConfig, ConfigError, load_config
from .criticality import critical_path, rank_by_criticality, score
from .models import BulkResult, LinkRequest, ResolvedId, VerificationResult
from .orchestrator import BulkOrchestrator
from .translator import RequestTranslator
from .youtrack_rest import YouTrackAPIError, YouTrackRestClient

__version__ = "0.3.0"

__all__ = [
    "BulkConfig",
    "BulkOrchestrator",
    "BulkResult",
    "ConfigError",
    "LinkRequest",
    "RequestTranslator",
    "ResolvedId",
    "VerificationResult",
    "YouTrackAPIError",
    "YouTrackRestClient",
    "critical_path",
    "load_config",
    "rank_by_criticality",
    "score",
    "__version__",
]
