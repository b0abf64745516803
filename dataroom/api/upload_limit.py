"""Upload Size Limit — rejects oversized document uploads before the body is read.

Invariants:
    - Applies only to POST /data-rooms/{id}/documents
    - Declared Content-Length above the file ceiling plus multipart framing -> 413
    - Requests without Content-Length pass through; the receiver enforces the
      exact ceiling while streaming
"""

import logging
import re

from fastapi.responses import JSONResponse

from dataroom.core.domain_types import MAX_UPLOAD_BYTES
from dataroom.core.errors import PayloadTooLargeError

logger = logging.getLogger(__name__)

# Boundaries, part headers and the small form fields sent beside the file
MULTIPART_OVERHEAD_BYTES = 64 * 1024

_UPLOAD_PATH = re.compile(r"^/data-rooms/[^/]+/documents/?$")


class UploadSizeLimitMiddleware:
    """Pure ASGI middleware; does not buffer or wrap the request stream."""

    def __init__(
        self,
        app,
        max_bytes: int = MAX_UPLOAD_BYTES,
        overhead_bytes: int = MULTIPART_OVERHEAD_BYTES,
    ):
        self.app = app
        self.max_bytes = max_bytes
        self.overhead_bytes = overhead_bytes

    async def __call__(self, scope, receive, send):
        if self._declares_oversized_upload(scope):
            error = PayloadTooLargeError("upload", self.max_bytes)
            logger.warning(
                "Rejected upload by declared Content-Length",
                extra={"path": scope.get("path"), "error_code": error.code},
            )
            response = JSONResponse(
                status_code=error.http_status, content=error.to_response(),
            )
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)

    def _declares_oversized_upload(self, scope) -> bool:
        if scope.get("type") != "http" or scope.get("method") != "POST":
            return False
        if not _UPLOAD_PATH.match(scope.get("path", "")):
            return False
        for name, value in scope.get("headers", []):
            if name.lower() == b"content-length":
                text = value.decode("latin-1").strip()
                return text.isdigit() and int(text) > self.max_bytes + self.overhead_bytes
        return False
