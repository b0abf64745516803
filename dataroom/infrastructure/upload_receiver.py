"""Temporary Upload Receiver — streams one uploaded file into scratch storage.

Invariants:
    - Scratch names are random-token prefixed and opened with exclusive create:
      concurrent uploads never share or overwrite a file
    - Client filenames are reduced to a sanitized basename (no traversal)
    - More than policy.max_bytes received -> partial file removed, PayloadTooLargeError
    - Returns only after the whole file is on disk; nothing else is written on failure
    - Knows nothing about rooms or nodes

Design Decisions:
    - aiofiles chunked writes: the event loop is never blocked on disk IO
    - Size counted while streaming rather than trusting the declared size
"""

import logging
import secrets
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os

from dataroom.core.domain_types import UploadPolicy
from dataroom.core.errors import PayloadTooLargeError
from dataroom.core.upload_naming import build_scratch_name

logger = logging.getLogger(__name__)

_NAME_ATTEMPTS = 3


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class ReceivedUpload:
    """A fully written scratch file and what the client declared about it."""
    temp_path: Path
    size_bytes: int
    mime_type: str | None
    original_filename: str


@dataclass(frozen=True)
class ScratchEntry:
    path: Path
    modified_at: datetime


class TemporaryUploadReceiver:
    """Writes uploads to the scratch directory under collision-free names."""

    def __init__(self, policy: UploadPolicy):
        self.policy = policy

    @property
    def scratch_dir(self) -> Path:
        return self.policy.scratch_dir

    async def ensure_scratch_dir(self) -> None:
        await aiofiles.os.makedirs(self.scratch_dir, exist_ok=True)

    async def receive(
        self,
        source: AsyncReadable,
        filename: str | None,
        content_type: str | None,
    ) -> ReceivedUpload:
        """Stream source to a new scratch file, enforcing the size ceiling."""
        await self.ensure_scratch_dir()
        original = filename or ""
        path = await self._write(source, original)
        size = (await aiofiles.os.stat(path)).st_size
        logger.info(
            f"Received upload {original!r} into scratch storage",
            extra={"path": path.name, "size_bytes": size},
        )
        return ReceivedUpload(
            temp_path=path,
            size_bytes=size,
            mime_type=content_type or None,
            original_filename=original,
        )

    async def _write(self, source: AsyncReadable, original: str) -> Path:
        for _ in range(_NAME_ATTEMPTS):
            path = self.scratch_dir / build_scratch_name(
                secrets.token_hex(16), original,
            )
            try:
                await self._stream_into(source, path, original)
                return path
            except FileExistsError:
                logger.warning(f"Scratch name collision on {path.name}, retrying")
        raise RuntimeError("Could not allocate a unique scratch file name")

    async def _stream_into(
        self, source: AsyncReadable, path: Path, original: str,
    ) -> None:
        written = 0
        created = False
        try:
            async with aiofiles.open(path, "xb") as out:
                created = True
                while True:
                    chunk = await source.read(self.policy.chunk_bytes)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.policy.max_bytes:
                        raise PayloadTooLargeError(
                            original or path.name, self.policy.max_bytes,
                        )
                    await out.write(chunk)
        except BaseException:
            if created:
                await self.discard(path)
            raise

    async def discard(self, path: Path | str | None) -> None:
        """Remove a scratch file; already-missing files are fine."""
        if not path:
            return
        with suppress(FileNotFoundError):
            await aiofiles.os.remove(path)

    async def list_entries(self) -> list[ScratchEntry]:
        """Every regular file currently in the scratch directory."""
        if not await aiofiles.os.path.isdir(self.scratch_dir):
            return []
        entries = []
        for name in await aiofiles.os.listdir(self.scratch_dir):
            path = self.scratch_dir / name
            try:
                stat = await aiofiles.os.stat(path)
            except FileNotFoundError:
                continue
            if not await aiofiles.os.path.isfile(path):
                continue
            entries.append(ScratchEntry(
                path=path,
                modified_at=datetime.fromtimestamp(stat.st_mtime, timezone.utc),
            ))
        return entries
