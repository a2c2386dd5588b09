"""
Device storage for transferred files.

The write primitive accepts base64 text only, mirroring the storage API of
the devices LocalDrop runs on. Writes go to a temporary file first and are
renamed into place, so a stored file is either complete or absent.
"""

import asyncio
import logging
import os
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from localdrop.errors import StorageIOError
from localdrop.transfer import codec

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536  # 64 KB


def safe_filename(name: str) -> str:
    """Strip any client-supplied directory components and control characters."""
    name = "".join(ch for ch in name if ch.isprintable())
    name = os.path.basename(name.replace("\\", "/")).strip()
    if name in ("", ".", ".."):
        return "unknown"
    return name


class DeviceStorage:
    """A directory holding the files received during this session."""

    def __init__(self, root: str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _reserve(self, filename: str) -> Path:
        """Claim a free name in the storage directory, ``a.txt`` -> ``a(1).txt``."""
        stem, suffix = os.path.splitext(filename)
        candidate = filename
        i = 1
        while True:
            path = self._root / candidate
            try:
                # Exclusive create so concurrent uploads never share a name
                with open(path, "xb"):
                    pass
                return path
            except FileExistsError:
                candidate = f"{stem}({i}){suffix}"
                i += 1

    async def write_encoded(self, filename: str, encoded: str) -> tuple[str, int]:
        """Decode ``encoded`` and store it. Returns (storage ref, size in bytes)."""
        data = codec.decode(encoded)

        try:
            await aiofiles.os.makedirs(self._root, exist_ok=True)
            target = await asyncio.to_thread(self._reserve, safe_filename(filename))
        except OSError as e:
            logger.error(f"Cannot create {filename} in {self._root}: {e}")
            raise StorageIOError.on_write() from e

        temp = target.with_name(f".{target.name}.{uuid.uuid4().hex[:8]}.part")
        try:
            async with aiofiles.open(temp, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(temp, target)
        except OSError as e:
            logger.error(f"Write to {target} failed: {e}")
            for leftover in (temp, target):
                try:
                    await aiofiles.os.remove(leftover)
                except OSError:
                    pass
            raise StorageIOError.on_write() from e

        logger.info(f"Stored {target.name} ({len(data)} bytes)")
        return str(target), len(data)

    async def size(self, ref: str) -> int:
        try:
            stat = await aiofiles.os.stat(ref)
        except OSError as e:
            logger.warning(f"Cannot stat {ref}: {e}")
            raise StorageIOError.on_read() from e
        return stat.st_size

    async def read_bytes(self, ref: str) -> bytes:
        try:
            async with aiofiles.open(ref, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.warning(f"Read of {ref} failed: {e}")
            raise StorageIOError.on_read() from e

    async def read_encoded(self, ref: str) -> str:
        return codec.encode(await self.read_bytes(ref))

    async def iter_chunks(self, ref: str, chunk_size: int = CHUNK_SIZE):
        async with aiofiles.open(ref, "rb") as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
