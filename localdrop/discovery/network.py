"""Local network address lookup."""

import logging
import socket

logger = logging.getLogger(__name__)

# Any routable address works; connecting a UDP socket sends nothing.
_PROBE_ADDRESS = ("10.255.255.255", 1)


def resolve_local_ip() -> str | None:
    """Best guess at this device's LAN address, or None when offline."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(_PROBE_ADDRESS)
            ip = sock.getsockname()[0]
            if ip and not ip.startswith("127.") and ip != "0.0.0.0":
                return ip
    except OSError as e:
        logger.debug(f"UDP probe for local address failed: {e}")

    try:
        _, _, ips = socket.gethostbyname_ex(socket.gethostname())
    except OSError as e:
        logger.debug(f"Error resolving local IPs: {e}")
        return None

    for ip in ips:
        if not ip.startswith("127."):
            return ip
    return None


def broadcast_addresses(ip: str | None) -> set[str]:
    """Broadcast targets for ``ip``, assuming a /24 subnet."""
    targets = {"255.255.255.255"}
    if ip:
        parts = ip.split(".")
        if len(parts) == 4:
            parts[3] = "255"
            targets.add(".".join(parts))
    return targets
