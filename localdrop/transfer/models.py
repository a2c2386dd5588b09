"""Pydantic models for the shared file session."""

import time
import uuid
from enum import Enum
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TransferDirection(str, Enum):
    SENT = "sent"
    RECEIVED = "received"


class _CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def now_ms() -> int:
    return int(time.time() * 1000)


def new_record_id(prefix: str = "file") -> str:
    """Time component plus a random suffix, e.g. ``upload_1718000000000_3f9a1c2b7``."""
    return f"{prefix}_{now_ms()}_{uuid.uuid4().hex[:9]}"


class TransferRecord(_CamelModel):
    """One file known to the session. Never mutated once registered."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    storage_ref: str  # path of the fully written file on device storage
    size: int
    mime_type: str
    created_at: int = Field(default_factory=now_ms)  # epoch milliseconds
    direction: TransferDirection

    @property
    def download_url(self) -> str:
        return f"/api/files/{quote(self.id, safe='')}"

    def summary(self) -> dict:
        """Listing entry exposed by ``GET /api/files``."""
        return FileSummary(
            id=self.id,
            name=self.name,
            size=self.size,
            mime_type=self.mime_type,
            direction=self.direction,
            download_url=self.download_url,
        ).model_dump(by_alias=True, mode="json")


class FileSummary(_CamelModel):
    id: str
    name: str
    size: int
    mime_type: str
    direction: TransferDirection
    download_url: str


class ServerAddress(BaseModel):
    """Where the server can be reached. ``ip`` is unknown until resolved."""

    model_config = ConfigDict(frozen=True)

    ip: str | None = None
    port: int


class MultipartField(_CamelModel):
    """The single file part pulled out of a multipart body."""

    filename: str
    mime_type: str
    raw_bytes: bytes


class UploadBody(_CamelModel):
    """JSON upload envelope: ``{filename, mimeType, data: base64}``."""

    filename: str | None = None
    mime_type: str | None = None
    data: str | None = None
