"""
Session context — everything one LocalDrop session shares.

Built once at process start and handed to the app factory and the lifecycle
manager. Handlers reach the registry through it by reference, so changes made
by the embedding application are visible to the very next request without
restarting the server.
"""

import logging
import threading

from localdrop.config import (
    API_PORT,
    DEFAULT_STORAGE_DIR,
    FRIENDLY_HOST,
    REQUEST_READ_TIMEOUT,
)
from localdrop.discovery.network import resolve_local_ip
from localdrop.discovery.service import ServiceAdvertiser
from localdrop.transfer.manager import TransferManager
from localdrop.transfer.models import ServerAddress
from localdrop.transfer.registry import FileRegistry
from localdrop.transfer.storage import DeviceStorage

logger = logging.getLogger(__name__)


class SessionContext:

    def __init__(
        self,
        storage_dir: str = DEFAULT_STORAGE_DIR,
        port: int = API_PORT,
        advertiser: ServiceAdvertiser | None = None,
        resolve_ip=resolve_local_ip,
        read_timeout: float = REQUEST_READ_TIMEOUT,
    ) -> None:
        self.registry = FileRegistry()
        self.storage = DeviceStorage(storage_dir)
        self.manager = TransferManager(self.registry, self.storage)
        self.advertiser = advertiser
        self.resolve_ip = resolve_ip
        self.read_timeout = read_timeout
        self._address = ServerAddress(ip=None, port=port)
        self._address_lock = threading.Lock()
        self._address_listeners: list = []  # fn(ip)
        logger.info(f"Session initialised, storage at {self.storage.root}")

    @property
    def address(self) -> ServerAddress:
        return self._address

    def add_address_listener(self, callback) -> None:
        """Register callback: fn(ip: str | None), called on every address update."""
        self._address_listeners.append(callback)

    def remove_address_listener(self, callback) -> None:
        if callback in self._address_listeners:
            self._address_listeners.remove(callback)

    def set_ip(self, ip: str | None) -> None:
        with self._address_lock:
            self._address = self._address.model_copy(update={"ip": ip})
        logger.info(f"Device address is now {ip or 'unknown'}")
        for cb in list(self._address_listeners):
            try:
                cb(ip)
            except Exception as e:
                logger.error(f"Address listener error: {e}")

    def set_port(self, port: int) -> None:
        with self._address_lock:
            self._address = self._address.model_copy(update={"port": port})

    @property
    def ip_url(self) -> str | None:
        address = self._address
        if not address.ip:
            return None
        return f"http://{address.ip}:{address.port}"

    @property
    def friendly_url(self) -> str:
        return f"http://{FRIENDLY_HOST}:{self._address.port}"

    def close(self) -> None:
        """Forget every record. Stored files are left on disk."""
        dropped = len(self.registry)
        self.registry.clear()
        logger.info(f"Session closed, {dropped} record(s) dropped")
