"""
Byte <-> text codec.

Standard base64 (RFC 4648 alphabet, ``=`` padding) written out by hand.
Storage and the JSON upload path only carry text, so every payload crosses
this boundary on its way in and out.
"""

from localdrop.errors import InvalidUpload

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
PAD = "="

_DECODE_TABLE = {ch: index for index, ch in enumerate(ALPHABET)}


class CodecError(InvalidUpload):
    """Input is not valid base64."""

    message = "Invalid base64 data"


def encode(data: bytes) -> str:
    """Encode ``data`` as base64 text."""
    out: list[str] = []
    length = len(data)

    for i in range(0, length - length % 3, 3):
        triplet = (data[i] << 16) | (data[i + 1] << 8) | data[i + 2]
        out.append(ALPHABET[(triplet >> 18) & 0x3F])
        out.append(ALPHABET[(triplet >> 12) & 0x3F])
        out.append(ALPHABET[(triplet >> 6) & 0x3F])
        out.append(ALPHABET[triplet & 0x3F])

    remainder = length % 3
    if remainder == 1:
        triplet = data[-1] << 16
        out.append(ALPHABET[(triplet >> 18) & 0x3F])
        out.append(ALPHABET[(triplet >> 12) & 0x3F])
        out.append(PAD * 2)
    elif remainder == 2:
        triplet = (data[-2] << 16) | (data[-1] << 8)
        out.append(ALPHABET[(triplet >> 18) & 0x3F])
        out.append(ALPHABET[(triplet >> 12) & 0x3F])
        out.append(ALPHABET[(triplet >> 6) & 0x3F])
        out.append(PAD)

    return "".join(out)


def decode(text: str) -> bytes:
    """Decode base64 ``text``. Line breaks are ignored; anything else foreign is rejected."""
    text = "".join(text.split())
    if len(text) % 4:
        raise CodecError("Invalid base64 length")
    if not text:
        return b""

    padding = len(text) - len(text.rstrip(PAD))
    if padding > 2:
        raise CodecError("Invalid base64 padding")

    body = text[: len(text) - padding]
    out = bytearray()
    bits = 0
    bit_count = 0
    for ch in body:
        try:
            value = _DECODE_TABLE[ch]
        except KeyError:
            raise CodecError(f"Invalid base64 character {ch!r}") from None
        bits = (bits << 6) | value
        bit_count += 6
        if bit_count >= 8:
            bit_count -= 8
            out.append((bits >> bit_count) & 0xFF)
            bits &= (1 << bit_count) - 1

    return bytes(out)


def to_data_uri(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{encode(data)}"
