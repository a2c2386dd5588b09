"""
pytest configuration and fixtures.
"""

import socket
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from localdrop.app import create_app
from localdrop.context import SessionContext
from localdrop.discovery.service import ServiceAdvertiser

DEVICE_IP = "192.168.1.20"


class RecordingAdvertiser(ServiceAdvertiser):
    """Advertiser double that remembers what it was asked to do."""

    def __init__(self, fail: bool = False):
        self.calls: list[tuple[str, object]] = []
        self.fail = fail

    async def publish(self, announcement):
        self.calls.append(("publish", announcement))
        if self.fail:
            raise OSError("network unreachable")

    async def unpublish(self, name):
        self.calls.append(("unpublish", name))
        if self.fail:
            raise OSError("network unreachable")

    @property
    def actions(self) -> list[str]:
        return [action for action, _ in self.calls]


@pytest.fixture
def storage_dir(tmp_path) -> str:
    return str(tmp_path / "storage")


@pytest.fixture
def ctx(storage_dir) -> Generator[SessionContext, None, None]:
    """Session with a known device address."""
    context = SessionContext(
        storage_dir=storage_dir,
        port=8080,
        resolve_ip=lambda: DEVICE_IP,
    )
    context.set_ip(DEVICE_IP)
    yield context
    context.close()


@pytest.fixture
def client(ctx) -> TestClient:
    """Client against the app, without running its lifespan."""
    return TestClient(create_app(ctx))


@pytest.fixture
def shared_file(tmp_path):
    """A file on 'device storage' ready to be shared."""
    def _make(name: str = "notes.txt", content: bytes = b"hello from the phone") -> str:
        path = tmp_path / "device" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return str(path)
    return _make


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def multipart_body(
    filename: str | None,
    payload: bytes,
    boundary: str = "----WebKitFormBoundaryXYZ",
    content_type: str | None = "text/plain",
    extra_fields: dict[str, str] | None = None,
) -> bytes:
    """Build a multipart/form-data body the way a browser would."""
    parts = []
    for name, value in (extra_fields or {}).items():
        parts.append(
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{value}\r\n".encode()
        )
    disposition = 'form-data; name="file"'
    if filename is not None:
        disposition += f'; filename="{filename}"'
    header = f"--{boundary}\r\nContent-Disposition: {disposition}\r\n"
    if content_type:
        header += f"Content-Type: {content_type}\r\n"
    parts.append(header.encode() + b"\r\n" + payload + b"\r\n")
    return b"".join(parts) + f"--{boundary}--\r\n".encode()
