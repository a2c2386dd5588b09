"""
Discovery Coordinator.

Keeps the LAN advertisement in step with the server: advertised while the
server is running and its address is known, withdrawn otherwise. Discovery
is best-effort, so advertiser failures are logged and swallowed; clients can
always fall back to the numeric address.
"""

import asyncio
import logging

from localdrop.config import APP_ID, DEVICE_NAME, SERVICE_NAME, SERVICE_PATH, SERVICE_TYPE
from localdrop.discovery.models import ServiceAnnouncement
from localdrop.discovery.service import ServiceAdvertiser

logger = logging.getLogger(__name__)


class DiscoveryCoordinator:

    def __init__(
        self,
        advertiser: ServiceAdvertiser,
        port: int,
        name: str = SERVICE_NAME,
    ) -> None:
        self._advertiser = advertiser
        self._port = port
        self._name = name
        self._running = False
        self._ip: str | None = None
        self._advertised: ServiceAnnouncement | None = None
        self._lock = asyncio.Lock()

    @property
    def advertised(self) -> bool:
        return self._advertised is not None

    async def server_started(self) -> None:
        self._running = True
        await self._reconcile()

    async def server_stopped(self) -> None:
        self._running = False
        await self._reconcile()

    async def address_changed(self, ip: str | None) -> None:
        """``None`` means the address was lost."""
        self._ip = ip
        await self._reconcile()

    def _wanted(self) -> ServiceAnnouncement | None:
        if not (self._running and self._ip):
            return None
        return ServiceAnnouncement(
            app_id=APP_ID,
            name=self._name,
            service_type=SERVICE_TYPE,
            ip_address=self._ip,
            port=self._port,
            path=SERVICE_PATH,
            device_name=DEVICE_NAME,
        )

    async def _reconcile(self) -> None:
        async with self._lock:
            wanted = self._wanted()
            if wanted == self._advertised:
                return

            if self._advertised is not None:
                try:
                    await self._advertiser.unpublish(self._name)
                except Exception as e:
                    logger.warning(f"Failed to withdraw '{self._name}': {e}")
                self._advertised = None

            if wanted is not None:
                try:
                    await self._advertiser.publish(wanted)
                    self._advertised = wanted
                except Exception as e:
                    logger.error(f"Failed to advertise '{self._name}': {e}")
