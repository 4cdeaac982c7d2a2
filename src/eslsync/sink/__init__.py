"""
Sink integration layer.

Provides the abstract sink interface and the HTTP client for the ESL API.
"""

from eslsync.sink.client import SinkClient
from eslsync.sink.interface import SinkInterface
from eslsync.sink.retry import ShutdownAwareSleep, retry_async

__all__ = [
    "SinkInterface",
    "SinkClient",
    "ShutdownAwareSleep",
    "retry_async",
]
