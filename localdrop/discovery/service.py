"""
UDP-based LAN service advertisement.

Periodically broadcasts a beacon naming the LocalDrop HTTP service so
companion clients can find it without typing the numeric address. A final
``withdrawn`` beacon is sent when the service is unpublished.
"""

import asyncio
import json
import logging
import socket

from localdrop.config import DISCOVERY_INTERVAL, DISCOVERY_PORT
from localdrop.discovery.models import DiscoveryBeacon, ServiceAnnouncement
from localdrop.discovery.network import broadcast_addresses

logger = logging.getLogger(__name__)


class ServiceAdvertiser:
    """Something that can make a named service visible on the LAN."""

    async def publish(self, announcement: ServiceAnnouncement) -> None:
        raise NotImplementedError

    async def unpublish(self, name: str) -> None:
        raise NotImplementedError


class BeaconAdvertiser(ServiceAdvertiser):
    """Advertises services by UDP broadcast."""

    def __init__(
        self, port: int = DISCOVERY_PORT, interval: float = DISCOVERY_INTERVAL
    ) -> None:
        self._port = port
        self._interval = interval
        self._transport: asyncio.DatagramTransport | None = None
        self._tasks: dict[str, asyncio.Task] = {}
        self._announcements: dict[str, ServiceAnnouncement] = {}

    async def _ensure_transport(self) -> asyncio.DatagramTransport:
        if self._transport is None:
            loop = asyncio.get_running_loop()
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.setblocking(False)
            transport, _ = await loop.create_datagram_endpoint(
                asyncio.DatagramProtocol, sock=sock
            )
            self._transport = transport
        return self._transport

    def _send(self, beacon: DiscoveryBeacon) -> None:
        data = json.dumps(beacon.model_dump()).encode("utf-8")
        for bcast_ip in broadcast_addresses(beacon.ip_address):
            try:
                self._transport.sendto(data, (bcast_ip, self._port))
            except OSError as e:
                # Some interfaces do not support broadcast
                logger.debug(f"Beacon to {bcast_ip} failed: {e}")

    async def _broadcast_loop(self, announcement: ServiceAnnouncement) -> None:
        beacon = DiscoveryBeacon(**announcement.model_dump())
        while True:
            try:
                self._send(beacon)
            except Exception as e:
                logger.warning(f"Broadcast failed: {e}")
            await asyncio.sleep(self._interval)

    async def publish(self, announcement: ServiceAnnouncement) -> None:
        await self._ensure_transport()
        previous = self._tasks.pop(announcement.name, None)
        if previous:
            previous.cancel()
        self._announcements[announcement.name] = announcement
        self._tasks[announcement.name] = asyncio.create_task(
            self._broadcast_loop(announcement)
        )
        logger.info(
            f"Advertising '{announcement.name}' ({announcement.service_type}) "
            f"at {announcement.ip_address}:{announcement.port}"
        )

    async def unpublish(self, name: str) -> None:
        task = self._tasks.pop(name, None)
        if task:
            task.cancel()
        announcement = self._announcements.pop(name, None)
        if announcement and self._transport:
            self._send(DiscoveryBeacon(**announcement.model_dump(), withdrawn=True))
            logger.info(f"Withdrew '{name}'")

        if not self._tasks and self._transport:
            self._transport.close()
            self._transport = None
