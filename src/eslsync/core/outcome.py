"""
Request outcome.

Aggregates counts and errors for one inbound request.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RequestOutcome:
    """
    Result of processing one inbound batch of source records.

    Success is request-level: any recorded error makes the whole request
    fail, counts are informational.

    Attributes:
        updated: Items upserted at the sink
        deleted: Items deleted at the sink
        skipped: Items or scopes ignored (no store data, unmapped store)
        errors: One entry per failed transform or delivery, in order
        internal_error: Set when the request failed unexpectedly; no per-item detail
    """

    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    internal_error: Optional[str] = None

    def add_updated(self, count: int) -> None:
        self.updated += count

    def add_deleted(self, count: int) -> None:
        self.deleted += count

    def increment_skipped(self) -> None:
        self.skipped += 1

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def merge(self, other: "RequestOutcome") -> None:
        """Fold another partial outcome into this one."""
        self.updated += other.updated
        self.deleted += other.deleted
        self.skipped += other.skipped
        self.errors.extend(other.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors) or self.internal_error is not None

    @property
    def status_code(self) -> int:
        """HTTP-style status for the request: 200 clean, 500 with errors."""
        return 500 if self.has_errors else 200

    def summary(self) -> str:
        """Human-readable result line returned to the caller."""
        if self.internal_error is not None:
            return f"Internal server error: {self.internal_error}"
        if self.errors:
            return (
                f"Processed with errors: {self.updated} items updated, "
                f"{self.deleted} items deleted, {len(self.errors)} errors. "
                f"First error: {self.errors[0]}"
            )
        return (
            f"Success: {self.updated} items updated, {self.deleted} items deleted, "
            f"{self.skipped} items skipped (unmapped stores)"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "updated": self.updated,
            "deleted": self.deleted,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "internal_error": self.internal_error,
            "status_code": self.status_code,
        }
