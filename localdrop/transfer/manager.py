"""
Transfer Manager — the session's files.

Orchestrates the File Registry and device storage for both sides of the
session: the embedding application sharing files (``direction=sent``) and
the HTTP handlers accepting uploads (``direction=received``).
"""

import logging
import mimetypes
import os

from localdrop.config import DEFAULT_MIME_TYPE
from localdrop.errors import NotFound, StorageIOError
from localdrop.transfer.models import TransferDirection, TransferRecord, new_record_id, now_ms
from localdrop.transfer.registry import FileRegistry
from localdrop.transfer.storage import DeviceStorage, safe_filename

logger = logging.getLogger(__name__)

FILE_ADDED = "file_added"
FILE_REMOVED = "file_removed"


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_MIME_TYPE


class TransferManager:
    """Adds, removes and looks up the files of the current session."""

    def __init__(self, registry: FileRegistry, storage: DeviceStorage) -> None:
        self._registry = registry
        self._storage = storage
        self._event_callbacks: list = []  # fn(event_type, record)

    @property
    def registry(self) -> FileRegistry:
        return self._registry

    @property
    def storage(self) -> DeviceStorage:
        return self._storage

    def on_event(self, callback) -> None:
        """Register callback: fn(event_type: str, record: TransferRecord)."""
        self._event_callbacks.append(callback)

    def _emit(self, event_type: str, record: TransferRecord) -> None:
        for cb in self._event_callbacks:
            try:
                cb(event_type, record)
            except Exception as e:
                logger.error(f"Event callback error: {e}")

    def list(self) -> list[TransferRecord]:
        return self._registry.list()

    def get(self, file_id: str) -> TransferRecord:
        record = self._registry.get(file_id)
        if record is None:
            raise NotFound()
        return record

    def share_file(
        self, path: str, name: str | None = None, mime_type: str | None = None
    ) -> TransferRecord:
        """Offer a file that already exists on this device to the peer."""
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise StorageIOError.on_read(f"Cannot read {path}")

        name = name or os.path.basename(path)
        record = TransferRecord(
            id=new_record_id("doc"),
            name=name,
            storage_ref=os.path.abspath(path),
            size=os.path.getsize(path),
            mime_type=mime_type or guess_mime_type(name),
            direction=TransferDirection.SENT,
        )
        self._registry.add(record)
        logger.info(f"Sharing '{record.name}' ({record.size} bytes)")
        self._emit(FILE_ADDED, record)
        return record

    async def receive_upload(
        self, filename: str | None, mime_type: str | None, encoded: str
    ) -> TransferRecord:
        """Persist a base64 payload sent by the peer and register it."""
        filename = safe_filename(filename) if filename else f"upload_{now_ms()}"
        storage_ref, size = await self._storage.write_encoded(filename, encoded)

        record = TransferRecord(
            id=new_record_id("upload"),
            name=filename,
            storage_ref=storage_ref,
            size=size,
            mime_type=mime_type or guess_mime_type(filename),
            direction=TransferDirection.RECEIVED,
        )
        # Registered only once the file is fully on disk
        self._registry.add(record)
        logger.info(f"Received '{record.name}' ({record.size} bytes)")
        self._emit(FILE_ADDED, record)
        return record

    def remove(self, file_id: str) -> bool:
        record = self._registry.remove(file_id)
        if record is None:
            return False
        logger.info(f"Removed '{record.name}' from the session")
        self._emit(FILE_REMOVED, record)
        return True
