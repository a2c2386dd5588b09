"""Pydantic models for service discovery."""

from pydantic import BaseModel


class ServiceAnnouncement(BaseModel):
    """A named TCP service offered on the LAN."""
    app_id: str
    name: str
    service_type: str  # e.g. "_http._tcp"
    ip_address: str
    port: int
    path: str = "/"
    device_name: str = ""


class DiscoveryBeacon(BaseModel):
    """The JSON payload broadcast over UDP."""
    app_id: str
    name: str
    service_type: str
    ip_address: str
    port: int
    path: str
    device_name: str = ""
    withdrawn: bool = False
