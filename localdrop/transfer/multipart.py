"""
multipart/form-data decoder.

A small state-machine scanner over the raw body bytes:

    SEEKING_BOUNDARY --delimiter--> READING_HEADERS --blank line--> READING_BODY
           ^                                                            |
           +---------------------- next delimiter ----------------------+

Only the first part carrying a ``filename=`` parameter is returned;
multi-file bodies are not supported.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from localdrop.config import DEFAULT_MIME_TYPE
from localdrop.errors import InvalidUpload
from localdrop.transfer.models import MultipartField

logger = logging.getLogger(__name__)

# Chrome/Safari/Edge default: "----WebKitFormBoundary" + 16 word chars,
# which appears in the body as "------WebKitFormBoundary...".
_WEBKIT_BOUNDARY = re.compile(rb"------WebKitFormBoundary\w+")
_FIRST_DASHES = re.compile(rb"--([^\r\n]+)")
_HEADER_BOUNDARY = re.compile(r'boundary=(?:"([^"]+)"|([^;\s]+))', re.IGNORECASE)
_DISPOSITION_PARAM = re.compile(r'(\w+\*?)\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^;]*))')


class _State(Enum):
    SEEKING_BOUNDARY = "seeking-boundary"
    READING_HEADERS = "reading-headers"
    READING_BODY = "reading-body"
    DONE = "done"


@dataclass
class MultipartPart:
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def disposition_params(self) -> dict[str, str]:
        value = self.headers.get("content-disposition", "")
        params = {}
        for match in _DISPOSITION_PARAM.finditer(value):
            quoted, bare = match.group(2), match.group(3)
            params[match.group(1).lower()] = (
                quoted.replace('\\"', '"') if quoted is not None else bare.strip()
            )
        return params

    @property
    def filename(self) -> str | None:
        return self.disposition_params.get("filename")

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")


def boundary_from_content_type(content_type: str | None) -> str | None:
    """The ``boundary=`` parameter of a multipart Content-Type header."""
    if not content_type or "multipart/" not in content_type.lower():
        return None
    match = _HEADER_BOUNDARY.search(content_type)
    if not match:
        return None
    return match.group(1) or match.group(2)


def extract_boundary(body: bytes, content_type: str | None = None) -> str:
    """Work out the boundary token, first match wins.

    1. the ``boundary=`` parameter of ``content_type``, when given
    2. a browser-default ``------WebKitFormBoundary...`` line in the body
    3. whatever follows the first ``--`` up to the end of that line
    """
    boundary = boundary_from_content_type(content_type)
    if boundary:
        return boundary

    match = _WEBKIT_BOUNDARY.search(body)
    if match:
        return match.group(0)[2:].decode("ascii")

    match = _FIRST_DASHES.search(body)
    if match:
        token = match.group(1).rstrip(b" \t")
        if token:
            return token.decode("latin-1")

    raise InvalidUpload("Missing multipart boundary")


def _decode_header_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


class MultipartScanner:
    """Splits a multipart body into parts.

    Lines end in CRLF; a bare LF is tolerated. Malformed input raises
    ``InvalidUpload`` instead of yielding a guess.
    """

    def __init__(self, boundary: str):
        if not boundary:
            raise InvalidUpload("Missing multipart boundary")
        self.delimiter = b"--" + boundary.encode("latin-1")

    def _line_end(self, body: bytes, pos: int) -> tuple[int, int] | None:
        """Return (start, end) of the next line terminator at or after ``pos``."""
        index = body.find(b"\n", pos)
        if index == -1:
            return None
        if index > pos and body[index - 1:index] == b"\r":
            return index - 1, index + 1
        return index, index + 1

    def parts(self, body: bytes):
        state = _State.SEEKING_BOUNDARY
        pos = 0
        part: MultipartPart | None = None

        while state is not _State.DONE:
            if state is _State.SEEKING_BOUNDARY:
                index = body.find(self.delimiter, pos)
                if index == -1:
                    state = _State.DONE
                    continue
                pos = index + len(self.delimiter)
                if body.startswith(b"--", pos):
                    state = _State.DONE
                    continue
                # Transport padding may sit between the delimiter and CRLF.
                while pos < len(body) and body[pos] in b" \t":
                    pos += 1
                line = self._line_end(body, pos)
                if line is None or line[0] != pos:
                    raise InvalidUpload("Malformed multipart delimiter line")
                pos = line[1]
                part = MultipartPart()
                state = _State.READING_HEADERS

            elif state is _State.READING_HEADERS:
                line = self._line_end(body, pos)
                if line is None:
                    raise InvalidUpload("Unterminated multipart headers")
                raw = body[pos:line[0]]
                pos = line[1]
                if not raw:
                    state = _State.READING_BODY
                    continue
                name, sep, value = _decode_header_text(raw).partition(":")
                if sep:
                    part.headers[name.strip().lower()] = value.strip()

            elif state is _State.READING_BODY:
                end = body.find(b"\r\n" + self.delimiter, pos)
                skip = 2
                if end == -1:
                    end = body.find(b"\n" + self.delimiter, pos)
                    skip = 1
                if end == -1:
                    raise InvalidUpload("Multipart body is missing its closing boundary")
                part.body = body[pos:end]
                yield part
                part = None
                pos = end + skip
                state = _State.SEEKING_BOUNDARY


def decode_multipart(body: bytes, boundary: str) -> MultipartField:
    """Return the first file-bearing part of ``body``."""
    for part in MultipartScanner(boundary).parts(body):
        params = part.disposition_params
        if "filename" not in params:
            continue
        return MultipartField(
            filename=params["filename"] or "unknown",
            mime_type=part.content_type or DEFAULT_MIME_TYPE,
            raw_bytes=part.body,
        )

    raise InvalidUpload("No file found in multipart body")


def parse_upload(body: bytes, content_type: str | None = None) -> MultipartField:
    """Resolve the boundary and decode in one step."""
    if not body:
        raise InvalidUpload("No data received")
    boundary = extract_boundary(body, content_type)
    logger.debug(f"Decoding multipart body of {len(body)} bytes, boundary {boundary!r}")
    return decode_multipart(body, boundary)
