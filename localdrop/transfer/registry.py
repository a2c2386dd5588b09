"""
File Registry — the ordered set of transfer records in the session.

Shared by the embedding application and the HTTP handlers. Every mutation
swaps in a new immutable tuple under a lock, so a reader holding a snapshot
never sees a half-applied change and insertion order is kept.
"""

import logging
import threading

from localdrop.transfer.models import TransferRecord

logger = logging.getLogger(__name__)


class DuplicateRecordError(ValueError):
    pass


class FileRegistry:
    """Lock-guarded, append/filter-only collection of ``TransferRecord``."""

    def __init__(self, records: tuple[TransferRecord, ...] = ()) -> None:
        self._records: tuple[TransferRecord, ...] = tuple(records)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, file_id: object) -> bool:
        return any(r.id == file_id for r in self._records)

    def snapshot(self) -> tuple[TransferRecord, ...]:
        """The current records, in insertion order."""
        return self._records

    def list(self) -> list[TransferRecord]:
        return list(self._records)

    def get(self, file_id: str) -> TransferRecord | None:
        for record in self._records:
            if record.id == file_id:
                return record
        return None

    def add(self, record: TransferRecord) -> TransferRecord:
        with self._lock:
            if record.id in self:
                raise DuplicateRecordError(f"Record {record.id} already registered")
            self._records = self._records + (record,)
        logger.debug(f"Registered {record.id} ({record.name})")
        return record

    def remove(self, file_id: str) -> TransferRecord | None:
        """Drop ``file_id``. Removing an unknown id is a no-op returning None."""
        with self._lock:
            removed = None
            kept = []
            for record in self._records:
                if record.id == file_id:
                    removed = record
                else:
                    kept.append(record)
            if removed is not None:
                self._records = tuple(kept)
        if removed is not None:
            logger.debug(f"Unregistered {file_id}")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._records = ()
