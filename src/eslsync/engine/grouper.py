"""
Dispatch Grouper - partitions source records by destination store.

Each store scope of each record becomes either an upsert (transformed
sink item) or a delete (item key) for the mapped sink store. Scopes for
unmapped stores are skipped.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import structlog

from eslsync.core.errors import InvalidInputError, TransformError
from eslsync.core.item import DestinationRecord
from eslsync.core.records import SourceRecord
from eslsync.core.store_map import StoreMap
from eslsync.engine.transformer import RecordTransformer

logger = structlog.get_logger(__name__)


@dataclass
class GroupingResult:
    """
    Per-destination work produced from one request.

    Attributes:
        upserts: Sink store id -> items to create/update, in encounter order
        deletes: Sink store id -> item keys to delete, in encounter order
        skipped: Records without store data plus scopes for unmapped stores
        errors: One entry per record/scope that could not be transformed
    """

    upserts: Dict[str, List[DestinationRecord]] = field(default_factory=dict)
    deletes: Dict[str, List[str]] = field(default_factory=dict)
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def destination_stores(self) -> List[str]:
        """Get all sink stores with pending work, upsert stores first."""
        stores = list(self.upserts)
        stores.extend(s for s in self.deletes if s not in self.upserts)
        return stores


class DispatchGrouper:
    """
    Groups source records into per-store upserts and deletes.

    A record appearing in several scopes that map to the same sink store is
    processed once per scope, so both an upsert and a delete may be queued
    for one key. The sink applies them by key; no de-duplication is done here.
    """

    def __init__(self, store_map: StoreMap, transformer: Optional[RecordTransformer] = None):
        """
        Initialize the grouper.

        Args:
            store_map: Source store number -> sink store id
            transformer: Record transformer (a default one if not provided)
        """
        self.store_map = store_map
        self.transformer = transformer or RecordTransformer()

    def group(self, records: Iterable[SourceRecord]) -> GroupingResult:
        """
        Partition records by destination store.

        Args:
            records: Decoded source records in request order

        Returns:
            GroupingResult with upserts, deletes, skipped count and errors
        """
        result = GroupingResult()

        for record in records:
            if not record.stores:
                logger.debug("item_skipped_no_store_data", item_id=record.key)
                result.skipped += 1
                continue

            for scope in record.stores:
                dest_store = self.store_map.resolve(scope.store_number)
                if dest_store is None:
                    logger.debug(
                        "store_not_mapped",
                        item_id=record.key,
                        store=scope.store_number,
                    )
                    result.skipped += 1
                    continue

                if scope.should_delete:
                    self._queue_delete(result, record, scope.store_number, dest_store,
                                       removed=scope.removed, discontinued=scope.discontinued)
                    continue

                try:
                    item = self.transformer.transform(record, scope)
                except (InvalidInputError, TransformError) as e:
                    logger.error(
                        "transform_failed",
                        item_id=record.key,
                        store=scope.store_number,
                        error=str(e),
                    )
                    result.errors.append(f"Transform failed for {record.key}: {e}")
                    continue

                result.upserts.setdefault(dest_store, []).append(item)

        logger.debug(
            "records_grouped",
            upsert_stores=len(result.upserts),
            delete_stores=len(result.deletes),
            skipped=result.skipped,
            errors=len(result.errors),
        )
        return result

    def _queue_delete(
        self,
        result: GroupingResult,
        record: SourceRecord,
        source_store: Optional[str],
        dest_store: str,
        removed: bool,
        discontinued: bool,
    ) -> None:
        if not record.key:
            error = InvalidInputError("Item has no itemId")
            logger.error("delete_without_key", store=source_store, error=str(error))
            result.errors.append(f"Delete failed for item at store {source_store}: {error}")
            return

        logger.debug(
            "item_marked_for_deletion",
            item_id=record.key,
            store=source_store,
            removed=removed,
            discontinued=discontinued,
        )
        result.deletes.setdefault(dest_store, []).append(record.key)


def group_records(
    records: Iterable[SourceRecord],
    store_map: StoreMap,
    transformer: Optional[RecordTransformer] = None,
) -> GroupingResult:
    """Group records with a one-off grouper."""
    return DispatchGrouper(store_map, transformer).group(records)
