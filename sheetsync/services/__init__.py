"""
Service layer exports.
"""
from .coordinator import RequestCoordinator, build_request_coordinator
from .credential_service import CredentialService
from .query_service import QueryService
from .sync_service import SyncService

__all__ = [
    "RequestCoordinator",
    "build_request_coordinator",
    "CredentialService",
    "QueryService",
    "SyncService",
]
