"""Resilient Content Store Client — pins scratch files to content-addressed storage.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, timeout): max_retries retries with backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - All failures mapped to ContentStoreError (core/errors.py)
    - Satisfies the ContentStore protocol (core/repository_protocols.py)

Design Decisions:
    - Pinata-style API: POST {api}/pinning/pinFileToIPFS, GET {api}/data/testAuthentication
    - SHA-256 of the file computed while streaming, returned as asset_hash
    - Request body streamed from disk through aiofiles, one multipart part built by
      hand: httpx only streams synchronous file objects in its own multipart encoder
    - ±25% jitter on backoff: concurrent promotions do not retry in lockstep
"""

import asyncio
import hashlib
import logging
import random
import secrets
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os
import httpx

from dataroom.core.errors import ContentStoreError, ErrorContext
from dataroom.core.repository_protocols import ContentAddress

logger = logging.getLogger(__name__)

_HASH_CHUNK = 1024 * 1024


async def calculate_sha256(file_path: Path) -> str:
    """Stream a file through SHA-256."""
    digest = hashlib.sha256()
    async with aiofiles.open(file_path, "rb") as f:
        while True:
            chunk = await f.read(_HASH_CHUNK)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def multipart_envelope(filename: str, boundary: str) -> tuple[bytes, bytes]:
    """Part header before the file bytes and the closing boundary after them."""
    quoted = (
        filename.replace("\\", "\\\\").replace('"', "%22")
        .replace("\r", "").replace("\n", "")
    )
    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="file"; filename="{quoted}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("ascii")
    return head, tail


async def stream_multipart(
    file_path: Path, head: bytes, tail: bytes,
) -> AsyncIterator[bytes]:
    """Single-part multipart body read from disk without blocking the loop."""
    yield head
    async with aiofiles.open(file_path, "rb") as f:
        while True:
            chunk = await f.read(_HASH_CHUNK)
            if not chunk:
                break
            yield chunk
    yield tail


class ResilientContentStoreClient:
    """Wraps an httpx client with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        api_url: str,
        jwt: str,
        gateway_url: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 60_000,
        timeout_seconds: int = 120,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.gateway_url = gateway_url.rstrip("/")
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {jwt}"},
            timeout=timeout_seconds,
            transport=transport,
        )

    async def add(self, file_path: Path, filename: str) -> ContentAddress:
        """Upload and pin a file, returning its content address."""
        context = ErrorContext(debug_info={"filename": filename})
        asset_hash = await calculate_sha256(file_path)
        for attempt in range(self.max_retries + 1):
            try:
                response = await self._post_file(file_path, filename)
            except httpx.TimeoutException as e:
                await self._handle_transient_error(e, attempt, context)
                continue
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt, context,
                )
                continue
            if response.status_code >= 400:
                raise ContentStoreError(
                    f"HTTP {response.status_code}: {response.text[:200]}",
                    "client_error", context=context,
                )
            return self._to_address(response, asset_hash, attempt, context)
        raise ContentStoreError(
            "Retries exhausted", "connection_error", context=context,
        )

    async def is_healthy(self) -> bool:
        try:
            response = await self.client.get(
                f"{self.api_url}/data/testAuthentication", timeout=3,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Content store health check failed: {e}")
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _post_file(
        self, file_path: Path, filename: str,
    ) -> httpx.Response:
        size = (await aiofiles.os.stat(file_path)).st_size
        boundary = secrets.token_hex(16)
        head, tail = multipart_envelope(filename, boundary)
        return await self.client.post(
            f"{self.api_url}/pinning/pinFileToIPFS",
            content=stream_multipart(file_path, head, tail),
            headers={
                "Content-Type": f"multipart/form-data; boundary={boundary}",
                "Content-Length": str(len(head) + size + len(tail)),
            },
        )

    def _to_address(
        self,
        response: httpx.Response,
        asset_hash: str,
        attempt: int,
        context: ErrorContext,
    ) -> ContentAddress:
        try:
            cid = response.json()["IpfsHash"]
        except (ValueError, KeyError, TypeError):
            raise ContentStoreError(
                "Response did not carry a content identifier",
                "invalid_response", context=context,
            )
        logger.info(
            f"Pinned content {cid}", extra={"attempt": attempt + 1},
        )
        return ContentAddress(
            cid=cid, url=f"{self.gateway_url}/ipfs/{cid}", asset_hash=asset_hash,
        )

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise ContentStoreError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Content store rate limit hit, retry after {delay}ms",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise ContentStoreError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Content store transient error, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None


# Singleton (initialized on startup when configured)
content_store: ResilientContentStoreClient | None = None


def init_content_store(**kwargs) -> ResilientContentStoreClient:
    global content_store
    content_store = ResilientContentStoreClient(**kwargs)
    return content_store


async def close_content_store() -> None:
    global content_store
    if content_store is not None:
        await content_store.aclose()
        content_store = None


def get_content_store() -> ResilientContentStoreClient | None:
    """FastAPI dependency; None when no content store is configured."""
    return content_store
