"""
Error types for the ESL sync pipeline.

Per-record and per-batch errors are collected into a RequestOutcome
instead of aborting the request; only ConfigurationError is fatal.
"""

from typing import Optional


class EslSyncError(Exception):
    """Base class for all sync errors."""
    pass


class InvalidInputError(EslSyncError):
    """A record or store scope is missing required data."""
    pass


class TransformError(EslSyncError):
    """Deriving the sink record failed for one item."""
    pass


class DeliveryError(EslSyncError):
    """
    The sink rejected a batch or could not be reached.

    Attributes:
        status_code: Last HTTP status observed, None for transport failures
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DeliveryCancelledError(DeliveryError):
    """Retry backoff was interrupted by shutdown."""
    pass


class ConfigurationError(EslSyncError):
    """Startup configuration is missing or invalid."""
    pass


class ServiceUnavailableError(EslSyncError):
    """The service is shutting down and no longer accepts requests."""
    pass
