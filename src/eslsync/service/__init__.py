"""
Service layer.

Request orchestration and the inbound webhook application.
"""

from eslsync.service.orchestrator import SyncOrchestrator
from eslsync.service.server import create_app

__all__ = [
    "SyncOrchestrator",
    "create_app",
]
