"""
Store mapping table.

Maps source store numbers to sink store ids. Built once at startup and
shared read-only by every request.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterator, Optional

import structlog

if TYPE_CHECKING:
    from eslsync.config import SyncConfig

logger = structlog.get_logger(__name__)


class StoreMap(Mapping):
    """
    Immutable source store number -> sink store id lookup.

    Stores absent from the map are ignored by the pipeline.
    """

    def __init__(self, mappings: Optional[Dict[str, str]] = None):
        self._mappings = MappingProxyType(dict(mappings or {}))

    @classmethod
    def from_config(cls, config: "SyncConfig") -> "StoreMap":
        """Build the store map from configuration."""
        store_map = cls(config.store_mappings)
        if not store_map:
            logger.warning("no_store_mappings", detail="All items will be ignored")
        for source, dest in store_map.items():
            logger.info("store_mapping", source_store=source, dest_store=dest)
        return store_map

    def resolve(self, source_store: Optional[str]) -> Optional[str]:
        """Get the sink store id for a source store, None if not mapped."""
        if source_store is None:
            return None
        return self._mappings.get(source_store)

    def __getitem__(self, key: str) -> str:
        return self._mappings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)

    def __repr__(self) -> str:
        return f"StoreMap({dict(self._mappings)})"
